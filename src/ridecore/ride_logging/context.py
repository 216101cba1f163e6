"""Thread-local logging context: trip, driver, rider and coupon ids.

Services wrap an operation in :func:`log_context` (or the trip shortcut) and
every record logged on that thread picks the ids up through ContextFilter.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


class LogContext:
    """Per-thread mapping of fields copied onto log records."""

    _local = threading.local()

    @classmethod
    def get(cls) -> dict[str, Any]:
        if not hasattr(cls._local, "fields"):
            cls._local.fields = {}
        fields: dict[str, Any] = cls._local.fields
        return fields

    @classmethod
    def bind(cls, **fields: Any) -> dict[str, Any]:
        """Add fields, skipping None values; return the previous mapping."""
        previous = dict(cls.get())
        cls._local.fields = {
            **previous,
            **{k: v for k, v in fields.items() if v is not None},
        }
        return previous

    @classmethod
    def restore(cls, previous: dict[str, Any]) -> None:
        cls._local.fields = previous

    @classmethod
    def clear(cls) -> None:
        cls._local.fields = {}


class ContextFilter(logging.Filter):
    """Copies LogContext fields onto records, never over an explicit ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in LogContext.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind fields for the duration of the block.

    Nested blocks add to the outer fields, which come back on exit.
    ContextFilter must be attached to the handler (see setup_logging).
    """
    previous = LogContext.bind(**fields)
    try:
        yield
    finally:
        LogContext.restore(previous)


@contextmanager
def log_trip_context(trip_id: str, **fields: Any) -> Iterator[None]:
    """Bind a trip id, which also serves as the correlation id by default."""
    fields.setdefault("correlation_id", trip_id)
    with log_context(trip_id=trip_id, **fields):
        yield
