"""Translate engine exceptions into caller-facing error outcomes.

The engine raises; whatever sits at the edge (an HTTP controller, a message
consumer) calls :func:`error_payload` to turn the exception into a plain
dict. Known errors keep their message and details. Anything else is logged
with its traceback and reported as a generic failure.
"""

import logging
from typing import Any

from .exceptions import (
    ActiveTripConflictError,
    ConfigurationError,
    InvalidStateTransition,
    NoDriverAvailableError,
    NotFoundError,
    PersistenceError,
    RideError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific classes first; the first isinstance match wins.
_ERROR_CODES: tuple[tuple[type[RideError], str, int], ...] = (
    (ValidationError, "validation_error", 400),
    (UnauthorizedError, "unauthorized", 403),
    (NotFoundError, "not_found", 404),
    (InvalidStateTransition, "invalid_state_transition", 409),
    (ActiveTripConflictError, "active_trip_conflict", 409),
    (NoDriverAvailableError, "no_driver_available", 409),
    (PersistenceError, "persistence_unavailable", 503),
    (ConfigurationError, "internal_error", 500),
)

GENERIC_MESSAGE = "An unexpected error occurred"


def _classify(exc: BaseException) -> tuple[str, int] | None:
    for exc_type, code, status in _ERROR_CODES:
        if isinstance(exc, exc_type):
            return code, status
    return None


def error_status(exc: BaseException) -> int:
    """HTTP-style status class for an exception (500 when unknown)."""
    classified = _classify(exc)
    return classified[1] if classified else 500


def error_payload(exc: BaseException, **context: Any) -> dict[str, Any]:
    """Build an error outcome for ``exc``.

    ``context`` is only logged, never returned to the caller.
    """
    classified = _classify(exc)
    if classified is None or classified[0] == "internal_error":
        logger.error("Unexpected error (%s): %s", context or "-", exc, exc_info=exc)
        return {"error": "internal_error", "message": GENERIC_MESSAGE, "details": {}}

    assert isinstance(exc, RideError)
    code, _ = classified
    return {"error": code, "message": exc.message, "details": dict(exc.details)}
