"""
Structured JSON logging for the livestock kernel.

Every record under the ``livestock`` logger is written as one JSON line.
Fields bound with ``LogContext.bind`` (business, animal, actor and
correlation ids) are stamped on every record emitted inside the block.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

_LOGGER_PREFIX = "livestock"

_CONTEXT: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"livestock_log_{name}", default=None)
    for name in ("correlation_id", "business_id", "animal_id", "actor_id")
}


class LogContext:
    """Operation-scoped log fields, safe across threads and tasks."""

    @staticmethod
    def get_all() -> dict[str, str]:
        """Bound fields that currently have a value."""
        return {name: var.get() for name, var in _CONTEXT.items() if var.get() is not None}

    @staticmethod
    def clear() -> None:
        for var in _CONTEXT.values():
            var.set(None)

    @staticmethod
    def bind(**fields: Any):
        """
        Bind fields for the duration of a ``with`` block.

        Values are stored as strings; None leaves a field untouched.
        Unknown field names raise ValueError immediately.
        """
        unknown = sorted(set(fields) - set(_CONTEXT))
        if unknown:
            raise ValueError(f"Unknown log context fields: {unknown}")
        return _bound(fields)


@contextmanager
def _bound(fields: dict[str, Any]) -> Iterator[type[LogContext]]:
    tokens = [
        (_CONTEXT[name], _CONTEXT[name].set(str(value)))
        for name, value in fields.items()
        if value is not None
    ]
    try:
        yield LogContext
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


# Attributes every LogRecord carries; anything else came from ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "taskName",
}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        # Kernel errors carry a code plus structured attributes.
        if hasattr(exc, "code"):
            fields["exc_code"] = exc.code
        for key, value in vars(exc).items():
            if not key.startswith("_") and key != "code":
                fields[f"exc_{key}"] = value
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``livestock`` namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler to the ``livestock`` logger. Later calls are no-ops."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    handler = handler or logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Undo ``configure_logging``. Tests only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
