"""Interfaces to the collaborators the engine depends on.

Profiles, persistence and event delivery live outside the core; adapters
in ``ridecore.stores``, ``ridecore.db`` and ``ridecore.pubsub`` implement
these protocols.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from ridecore.fares.coupons import Coupon
    from ridecore.matching.models import DriverCandidate, RiderContext
    from ridecore.trips.models import Trip


class UserRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    name: str
    email: str | None = None


class ProfileLookup(Protocol):
    """Read-only access to user, driver and rider profiles.

    Each ``find_*`` raises NotFoundError for an unknown id.
    """

    def find_user(self, user_id: str) -> UserRecord: ...

    def find_driver_profile(self, driver_id: str) -> "DriverCandidate": ...

    def find_rider_profile(self, rider_id: str) -> "RiderContext": ...

    def find_available_drivers(self) -> Sequence["DriverCandidate"]: ...


class TripStore(Protocol):
    def save(self, trip: "Trip") -> "Trip": ...

    def find_by_id(self, trip_id: str) -> "Trip": ...

    def find_active_by_rider(self, rider_id: str) -> list["Trip"]: ...

    def find_active_by_driver(self, driver_id: str) -> list["Trip"]: ...

    def find_history_by_rider(self, rider_id: str) -> list["Trip"]: ...

    def find_history_by_driver(self, driver_id: str) -> list["Trip"]: ...


class CouponStore(Protocol):
    def find_by_code(self, code: str) -> "Coupon | None": ...

    def find_all_valid(self, now: datetime) -> list["Coupon"]: ...

    def find_all_active(self) -> list["Coupon"]: ...

    def insert(self, coupon: "Coupon") -> bool:
        """Add a coupon unless its code is taken; True if it was added."""
        ...

    def update_terms(self, coupon: "Coupon") -> "Coupon | None":
        """Replace editable terms, keeping the stored usage count; None if missing."""
        ...

    def delete(self, code: str) -> None: ...

    def exists_by_code(self, code: str) -> bool: ...

    def increment_usage(self, code: str, now: datetime) -> bool:
        """Atomically bump usedCount if the coupon is valid at ``now``."""
        ...


class EventSink(Protocol):
    def publish(self, topic: str, payload: dict[str, Any]) -> None: ...
