"""Cross-cutting primitives: exceptions, error outcomes, locks and clock."""

from .clock import Clock, as_utc, utc_now
from .exceptions import (
    ActiveTripConflictError,
    ConfigurationError,
    InvalidStateTransition,
    NoDriverAvailableError,
    NotFoundError,
    PermanentError,
    PersistenceError,
    RideError,
    StateError,
    TransientError,
    UnauthorizedError,
    ValidationError,
)
from .locks import StripedLock
from .outcome import error_payload, error_status

__all__ = [
    "ActiveTripConflictError",
    "Clock",
    "ConfigurationError",
    "InvalidStateTransition",
    "NoDriverAvailableError",
    "NotFoundError",
    "PermanentError",
    "PersistenceError",
    "RideError",
    "StateError",
    "StripedLock",
    "TransientError",
    "UnauthorizedError",
    "ValidationError",
    "as_utc",
    "error_payload",
    "error_status",
    "utc_now",
]
