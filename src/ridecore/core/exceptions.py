"""Standardized exception hierarchy for the ride orchestration engine."""

from typing import Any


class RideError(Exception):
    """Base exception for all ride orchestration errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(RideError):
    """Errors that may succeed on retry."""

    pass


class PersistenceError(TransientError):
    """A trip or coupon store failed to read or write."""

    pass


class PermanentError(RideError):
    """Errors that will not succeed on retry."""

    pass


class ValidationError(PermanentError):
    """Invalid input or data format."""

    pass


class NotFoundError(PermanentError):
    """Requested entity does not exist."""

    pass


class UnauthorizedError(PermanentError):
    """Actor is not the rider or driver of record for the trip."""

    pass


class NoDriverAvailableError(PermanentError):
    """No candidate driver could be matched to a trip request.

    A business outcome rather than a fault: callers may retry later or
    widen the search radius.
    """

    pass


class ConfigurationError(PermanentError):
    """Missing or invalid configuration."""

    pass


class StateError(PermanentError):
    """Operation conflicts with the current state of an entity."""

    pass


class InvalidStateTransition(StateError):
    """Trip transition outside the lifecycle table or with a failed guard."""

    def __init__(
        self,
        current: Any,
        requested: Any,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        current_name = getattr(current, "value", current)
        requested_name = getattr(requested, "value", requested)
        message = f"Invalid transition from {current_name} to {requested_name}"
        if reason:
            message = f"{message}: {reason}"
        merged = {"current_state": current_name, "requested_state": requested_name}
        merged.update(details or {})
        super().__init__(message, merged)
        self.current = current
        self.requested = requested
        self.reason = reason


class ActiveTripConflictError(StateError):
    """Rider already has a trip in REQUESTED, ACCEPTED or STARTED."""

    pass
