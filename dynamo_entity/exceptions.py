"""
Custom exceptions for entity key and query building.

All errors are raised synchronously at the point of violation so callers
can handle them consistently, whichever chain or component raised them.
"""


class EntityError(Exception):
    """Base exception for all entity errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidIndexError(EntityError):
    """Raised when an unregistered index identifier is referenced."""

    def __init__(self, index: str):
        super().__init__(f"Invalid index: {index}", {"index": index})
        self.index = index


class IncompleteFacetsError(EntityError):
    """Raised when required partition or sort key facets are missing."""

    def __init__(self, missing: list[str], label: str | None = None):
        label = label or "key facets"
        super().__init__(
            f"Incomplete or invalid {label} supplied. Missing properties: {', '.join(missing)}",
            {"missing": list(missing), "label": label},
        )
        self.missing = list(missing)
        self.label = label


class InvalidChainError(EntityError):
    """Raised when a chain method is called in a state that cannot accept it."""

    def __init__(self, message: str, state: str | None = None):
        details = {}
        if state:
            details["state"] = state
        super().__init__(message, details)
        self.state = state


class InvalidSchemaError(EntityError):
    """Raised when a schema is structurally invalid at construction time."""

    def __init__(self, message: str, problems: list[str] | None = None):
        details = {}
        if problems:
            details["problems"] = list(problems)
        super().__init__(message, details)
        self.problems = list(problems or [])


class ValidationError(EntityError):
    """Raised when an attribute value fails casting or validation."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Invalid attribute {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class ExecutionError(EntityError):
    """Raised when the execution backend rejects a request."""

    def __init__(self, operation: str, table: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if table:
            details["table"] = table
        if cause:
            details["cause"] = str(cause)
        message = f"Execution failed during {operation}"
        if table:
            message += f" on {table}"
        super().__init__(message, details)
        self.operation = operation
        self.table = table
        self.cause = cause
