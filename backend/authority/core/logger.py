"""Structured logging configuration with run-scoped correlation ids."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Extra attributes copied from ``logger.info(..., extra={...})`` into the payload
EXTRA_KEYS = ("user_id", "kind", "count", "elapsed_ms", "action")


class JSONFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, default=str)


class CorrelationIdFilter(logging.Filter):
    """Ensure a ``correlation_id`` attribute is always present on log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.correlation_id = _correlation_id.get()
        return True


def current_correlation_id() -> str | None:
    """Return the correlation id bound to the running context, if any."""
    return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of a CLI command or sweep run.

    :param correlation_id: Explicit id to bind; a random UUID4 is used when omitted.
    :returns: Context manager yielding the bound id.
    """
    value = correlation_id or str(uuid4())
    token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(token)


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the root logger with JSON-formatted stdout output."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(CorrelationIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    level_value: int | str = level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level_value = resolved if isinstance(resolved, int) else level.upper()
    root.setLevel(level_value)


def init_app(app: Flask) -> None:
    """Attach the correlation filter to the application logger."""

    app.logger.addFilter(CorrelationIdFilter())


__all__ = [
    "configure_logging",
    "correlation_scope",
    "current_correlation_id",
    "init_app",
    "JSONFormatter",
]
