"""Root logger configuration for processes embedding the engine."""

import logging
import sys
from typing import TextIO

from .context import ContextFilter
from .filters import DefaultCorrelationFilter, PIIFilter
from .formatters import DevFormatter, JSONFormatter

NOISY_LOGGERS = ("sqlalchemy.engine", "redis", "faker")


class _RideHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Marker type so repeated setup replaces only our own handler."""


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    environment: str = "development",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install the engine's handler on the root logger and return it.

    Calling again swaps the previous engine handler; handlers installed by
    the host application are left in place.
    """
    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, _RideHandler)]:
        root.removeHandler(existing)

    handler = _RideHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter(environment) if json_output else DevFormatter())
    # Context first so the correlation default can see the trip id.
    handler.addFilter(ContextFilter())
    handler.addFilter(DefaultCorrelationFilter())
    handler.addFilter(PIIFilter())

    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper()))
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
