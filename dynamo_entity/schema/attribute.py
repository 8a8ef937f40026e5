"""
Attribute model: casting, defaults and validation for a single value.

Key composition never coerces values itself; ``Entity`` runs every value
through ``Attribute.val`` first.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from ..exceptions import InvalidSchemaError, ValidationError

ATTRIBUTE_TYPES = ("string", "number", "boolean", "enum")
CAST_TYPES = ("string", "number")

_PYTHON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "number": (int, float),
    "boolean": (bool,),
}


class Attribute:
    """A single schema attribute.

    Args:
        name: Attribute name used by callers
        field: Physical field name in the table (defaults to name)
        type: One of ATTRIBUTE_TYPES, or a list of accepted values (enum)
        required: Whether a value must be present
        read_only: Whether ``update().set()`` may change the value
        cast: Optional "string" or "number" cast applied before validation
        default: Value or zero-argument callable used when no value is given
        validate: Callable returning an error reason (falsy when valid),
            or a regex the value must match
        get: Optional ``(value, item) -> value`` hook applied to values read
            back from the store
        set: Optional ``(value, item) -> value`` hook applied to values
            written by put and update
    """

    def __init__(
        self,
        name: str,
        field: str | None = None,
        type: str | list[Any] | tuple[Any, ...] | None = None,
        required: bool = False,
        read_only: bool = False,
        cast: str | None = None,
        default: Any = None,
        validate: Callable[[Any], Any] | str | re.Pattern | None = None,
        label: str | None = None,
        get: Callable[[Any, dict[str, Any]], Any] | None = None,
        set: Callable[[Any, dict[str, Any]], Any] | None = None,
    ):
        self.name = name
        self.field = field or name
        self.label = label or name
        self.required = bool(required)
        self.read_only = bool(read_only)
        self.type, self.enum_values = self._make_type(type)
        self.cast = self._make_cast(cast)
        self._default = default
        self._validate = self._make_validate(validate)
        self._getter = self._make_hook("get", get)
        self._setter = self._make_hook("set", set)

    def _make_hook(self, kind: str, hook: Any) -> Callable[[Any, dict[str, Any]], Any] | None:
        if hook is not None and not callable(hook):
            raise InvalidSchemaError(
                f'Invalid "{kind}" property for attribute: "{self.name}". Expected a callable'
            )
        return hook

    def _make_type(self, definition: Any) -> tuple[str, tuple[Any, ...]]:
        if isinstance(definition, (list, tuple)):
            return "enum", tuple(definition)
        attr_type = definition or "string"
        if attr_type not in ATTRIBUTE_TYPES:
            raise InvalidSchemaError(
                f'Invalid "type" property for attribute: "{self.name}". '
                f"Acceptable types include {', '.join(ATTRIBUTE_TYPES)}"
            )
        return attr_type, ()

    def _make_cast(self, cast: str | None) -> Callable[[Any], Any]:
        if cast is None:
            return lambda value: value
        if cast not in CAST_TYPES:
            raise InvalidSchemaError(
                f'Invalid "cast" property for attribute: "{self.name}". '
                f"Acceptable types include {', '.join(CAST_TYPES)}"
            )
        if cast == "string":
            return str

        def to_number(value: Any) -> Any:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return value
            try:
                return float(value) if "." in str(value) else int(value)
            except (TypeError, ValueError):
                raise ValidationError(
                    self.name, "cannot be cast to type number", str(value)
                ) from None

        return to_number

    def _make_validate(self, definition: Any) -> Callable[[Any], tuple[bool, str]]:
        if definition is None:
            return lambda value: (True, "")
        if isinstance(definition, (str, re.Pattern)):
            pattern = re.compile(definition)

            def match(value: Any) -> tuple[bool, str]:
                ok = value is None or bool(pattern.search(str(value)))
                return ok, "" if ok else "Failed user defined regex"

            return match
        if callable(definition):

            def call(value: Any) -> tuple[bool, str]:
                reason = definition(value)
                if reason is True:
                    return True, ""
                if reason is False:
                    return False, "Failed user defined validation"
                return not reason, reason or ""

            return call
        raise InvalidSchemaError(
            f'Invalid "validate" property for attribute: "{self.name}". '
            "Expected a callable or a regular expression"
        )

    def apply_setter(self, value: Any, item: dict[str, Any]) -> Any:
        """Transform a value on its way into the store."""
        if self._setter is None:
            return value
        return self._setter(value, item)

    def apply_getter(self, value: Any, item: dict[str, Any]) -> Any:
        """Transform a value read back from the store."""
        if self._getter is None:
            return value
        return self._getter(value, item)

    def default(self) -> Any:
        if callable(self._default):
            return self._default()
        return self._default

    def _check_type(self, value: Any) -> tuple[bool, str]:
        if value is None:
            return (not self.required), ("Value is required" if self.required else "")
        if self.type == "enum":
            if value in self.enum_values:
                return True, ""
            accepted = ", ".join(str(v) for v in self.enum_values)
            return False, f"Value not found in set of acceptable values: {accepted}"
        expected = _PYTHON_TYPES[self.type]
        ok = isinstance(value, expected) and not (
            self.type == "number" and isinstance(value, bool)
        )
        if ok:
            return True, ""
        return False, (
            f"Received value of type {type(value).__name__}, "
            f"expected value of type {self.type}"
        )

    def is_valid(self, value: Any) -> tuple[bool, str]:
        """Return ``(valid, reason)`` without raising."""
        typed, type_error = self._check_type(value)
        if not typed:
            return False, type_error
        if value is None:
            return True, ""
        return self._validate(value)

    def val(self, value: Any = None) -> Any:
        """Cast, default and validate a value, raising ValidationError on failure."""
        if value is None:
            value = self.default()
        if value is not None:
            value = self.cast(value)
        valid, reason = self.is_valid(value)
        if not valid:
            raise ValidationError(self.name, reason, None if value is None else str(value))
        return value

    def __repr__(self) -> str:
        return f"Attribute(name={self.name!r}, field={self.field!r}, type={self.type!r})"
