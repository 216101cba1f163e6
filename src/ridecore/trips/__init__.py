"""Trip lifecycle state machine and orchestration."""

from .events import TripEventPublisher
from .models import (
    ACTIVE_DRIVER_STATES,
    ACTIVE_RIDER_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    CancelledBy,
    Trip,
    TripRequest,
    TripState,
)
from .service import TripService
from .settlement import estimate_duration_minutes, settlement_fare

__all__ = [
    "ACTIVE_DRIVER_STATES",
    "ACTIVE_RIDER_STATES",
    "TERMINAL_STATES",
    "VALID_TRANSITIONS",
    "CancelledBy",
    "Trip",
    "TripEventPublisher",
    "TripRequest",
    "TripService",
    "TripState",
    "estimate_duration_minutes",
    "settlement_fare",
]
