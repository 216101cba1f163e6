"""Trip state machine and models."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ridecore.core.clock import as_utc
from ridecore.core.exceptions import InvalidStateTransition
from ridecore.geo import GeoPoint


class TripState(str, Enum):
    """Trip lifecycle states."""

    REQUESTED = "REQUESTED"
    ACCEPTED = "ACCEPTED"
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class CancelledBy(str, Enum):
    RIDER = "RIDER"
    DRIVER = "DRIVER"


VALID_TRANSITIONS: dict[TripState, set[TripState]] = {
    TripState.REQUESTED: {TripState.ACCEPTED, TripState.CANCELLED},
    TripState.ACCEPTED: {TripState.STARTED, TripState.CANCELLED},
    TripState.STARTED: {TripState.COMPLETED},
    TripState.COMPLETED: set(),
    TripState.CANCELLED: set(),
}

TERMINAL_STATES = frozenset({TripState.COMPLETED, TripState.CANCELLED})
ACTIVE_RIDER_STATES = frozenset({TripState.REQUESTED, TripState.ACCEPTED, TripState.STARTED})
ACTIVE_DRIVER_STATES = frozenset({TripState.ACCEPTED, TripState.STARTED})

_STATE_TIMESTAMPS: dict[TripState, str] = {
    TripState.ACCEPTED: "accepted_at",
    TripState.STARTED: "started_at",
    TripState.COMPLETED: "completed_at",
    TripState.CANCELLED: "cancelled_at",
}


class Trip(BaseModel):
    """Trip with state machine logic.

    ``transition_to`` is the only place the state changes. Each transition
    stamps its timestamp once, never earlier than any timestamp already on
    the trip.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    trip_id: str = Field(default_factory=lambda: str(uuid4()))
    state: TripState = TripState.REQUESTED
    rider_id: str
    driver_id: str | None = None
    pickup: GeoPoint
    dropoff: GeoPoint
    requested_at: datetime
    accepted_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    fare_amount: float | None = None
    distance_km: float
    estimated_duration_minutes: int
    cancellation_reason: str | None = None
    cancelled_by: CancelledBy | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def check_transition(self, new_state: TripState) -> None:
        if new_state not in VALID_TRANSITIONS[self.state]:
            raise InvalidStateTransition(
                self.state, new_state, details={"trip_id": self.trip_id}
            )

    def transition_to(self, new_state: TripState, at: datetime, **changes: Any) -> None:
        """Move to ``new_state``, stamping its timestamp and applying changes.

        Raises InvalidStateTransition, leaving the trip untouched, if the
        transition is not in the lifecycle table.
        """
        self.check_transition(new_state)
        stamp = max([as_utc(at), *self._timestamps()])
        for name, value in changes.items():
            setattr(self, name, value)
        setattr(self, _STATE_TIMESTAMPS[new_state], stamp)
        self.state = new_state

    def _timestamps(self) -> list[datetime]:
        stamps = [self.requested_at, self.accepted_at, self.started_at]
        return [as_utc(s) for s in stamps if s is not None]

    def accept(self, driver_id: str, at: datetime) -> None:
        self.transition_to(TripState.ACCEPTED, at, driver_id=driver_id)

    def start(self, at: datetime) -> None:
        self.transition_to(TripState.STARTED, at)

    def complete(self, fare_amount: float, at: datetime) -> None:
        self.transition_to(TripState.COMPLETED, at, fare_amount=fare_amount)

    def cancel(self, cancelled_by: CancelledBy, reason: str | None, at: datetime) -> None:
        self.transition_to(
            TripState.CANCELLED,
            at,
            cancelled_by=cancelled_by,
            cancellation_reason=reason,
        )

    def to_response(
        self, rider_name: str | None = None, driver_name: str | None = None
    ) -> dict[str, Any]:
        """Client-facing JSON payload; the trip id is emitted as ``id``."""

        def iso(value: datetime | None) -> str | None:
            return value.isoformat() if value is not None else None

        return {
            "id": self.trip_id,
            "state": self.state.value,
            "riderId": self.rider_id,
            "riderName": rider_name,
            "driverId": self.driver_id,
            "driverName": driver_name,
            "pickupLocation": self.pickup.model_dump(),
            "dropoffLocation": self.dropoff.model_dump(),
            "requestedAt": iso(self.requested_at),
            "acceptedAt": iso(self.accepted_at),
            "startedAt": iso(self.started_at),
            "completedAt": iso(self.completed_at),
            "cancelledAt": iso(self.cancelled_at),
            "fareAmount": self.fare_amount,
            "distanceKm": self.distance_km,
            "estimatedDurationMinutes": self.estimated_duration_minutes,
            "cancellationReason": self.cancellation_reason,
            "cancelledBy": self.cancelled_by.value if self.cancelled_by else None,
        }


class TripRequest(BaseModel):
    """Inbound trip request; locations are checked by TripService."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    rider_id: str
    pickup_location: GeoPoint | None = None
    dropoff_location: GeoPoint | None = None
    matching_strategy: str | None = None
