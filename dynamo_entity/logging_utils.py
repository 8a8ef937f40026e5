"""
Structured JSON logging utilities.

Entity components log through standard ``logging`` loggers named
``dynamo_entity.<component>``. Applications running in cloud environments can
switch those records to single-line JSON by attaching the formatter:

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())
    logging.getLogger(PACKAGE_LOGGER).addHandler(handler)
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

PACKAGE_LOGGER = "dynamo_entity"

_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
}


class StructuredJsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs as single-line JSON objects with consistent fields:
    - timestamp: ISO 8601 format in UTC
    - level: Log level (INFO, WARNING, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - Additional context fields from extra dict (entity, table, index, ...)
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        package, _, component = record.name.partition(".")
        if package == PACKAGE_LOGGER and component:
            log_obj["component"] = component.split(".")[0]

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                try:
                    json.dumps(value)
                    log_obj[key] = value
                except (TypeError, ValueError):
                    log_obj[key] = str(value)

        return json.dumps(log_obj, default=str)


def get_entity_logger(name: str) -> logging.Logger:
    """
    Get a logger for entity components with consistent naming.

    Args:
        name: Component name (e.g., 'chain', 'dynamodb')

    Returns:
        Logger instance with name 'dynamo_entity.{name}'
    """
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


class EntityLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds entity context to all log messages.

    Used by ``Entity`` to stamp every record with its service, entity and table.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        """Add extra context to log record."""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs
