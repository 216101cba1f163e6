"""In-memory adapters for the engine's collaborator interfaces.

Stores hand out deep copies, so a caller mutating a loaded object never
changes stored state until it saves.
"""

import threading
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from ridecore.core.exceptions import NotFoundError
from ridecore.fares.coupons import Coupon, is_valid
from ridecore.matching.models import DriverCandidate, RiderContext
from ridecore.ports import UserRecord
from ridecore.trips.models import ACTIVE_DRIVER_STATES, ACTIVE_RIDER_STATES, Trip


class InMemoryTripStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._trips: dict[str, Trip] = {}

    def save(self, trip: Trip) -> Trip:
        with self._lock:
            self._trips[trip.trip_id] = trip.model_copy(deep=True)
        return trip.model_copy(deep=True)

    def find_by_id(self, trip_id: str) -> Trip:
        with self._lock:
            trip = self._trips.get(trip_id)
            if trip is None:
                raise NotFoundError(f"Trip not found with ID: {trip_id}", {"trip_id": trip_id})
            return trip.model_copy(deep=True)

    def find_active_by_rider(self, rider_id: str) -> list[Trip]:
        return self._select(lambda t: t.rider_id == rider_id and t.state in ACTIVE_RIDER_STATES)

    def find_active_by_driver(self, driver_id: str) -> list[Trip]:
        return self._select(
            lambda t: t.driver_id == driver_id and t.state in ACTIVE_DRIVER_STATES
        )

    def find_history_by_rider(self, rider_id: str) -> list[Trip]:
        return self._history(lambda t: t.rider_id == rider_id)

    def find_history_by_driver(self, driver_id: str) -> list[Trip]:
        return self._history(lambda t: t.driver_id == driver_id)

    def _select(self, predicate: Any) -> list[Trip]:
        with self._lock:
            return [t.model_copy(deep=True) for t in self._trips.values() if predicate(t)]

    def _history(self, predicate: Any) -> list[Trip]:
        trips = self._select(predicate)
        trips.sort(key=lambda t: t.requested_at, reverse=True)
        return trips


class InMemoryCouponStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._coupons: dict[str, Coupon] = {}

    def find_by_code(self, code: str) -> Coupon | None:
        with self._lock:
            coupon = self._coupons.get(code)
            return coupon.model_copy(deep=True) if coupon else None

    def find_all_valid(self, now: datetime) -> list[Coupon]:
        with self._lock:
            return [
                c.model_copy(deep=True)
                for _, c in sorted(self._coupons.items())
                if is_valid(c, now)
            ]

    def find_all_active(self) -> list[Coupon]:
        with self._lock:
            return [c.model_copy(deep=True) for _, c in sorted(self._coupons.items()) if c.active]

    def insert(self, coupon: Coupon) -> bool:
        with self._lock:
            if coupon.code in self._coupons:
                return False
            self._coupons[coupon.code] = coupon.model_copy(deep=True)
            return True

    def update_terms(self, coupon: Coupon) -> Coupon | None:
        with self._lock:
            stored = self._coupons.get(coupon.code)
            if stored is None:
                return None
            merged = coupon.model_copy(
                update={"used_count": stored.used_count, "created_at": stored.created_at},
                deep=True,
            )
            self._coupons[coupon.code] = merged
            return merged.model_copy(deep=True)

    def delete(self, code: str) -> None:
        with self._lock:
            self._coupons.pop(code, None)

    def exists_by_code(self, code: str) -> bool:
        with self._lock:
            return code in self._coupons

    def increment_usage(self, code: str, now: datetime) -> bool:
        with self._lock:
            coupon = self._coupons.get(code)
            if coupon is None or not is_valid(coupon, now):
                return False
            self._coupons[code] = coupon.model_copy(update={"used_count": coupon.used_count + 1})
            return True


class InMemoryProfileLookup:
    """Profile directory for wiring tests and local runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[str, UserRecord] = {}
        self._drivers: dict[str, DriverCandidate] = {}
        self._riders: dict[str, RiderContext] = {}

    def add_user(self, user: UserRecord) -> None:
        with self._lock:
            self._users[user.user_id] = user

    def add_driver(self, driver: DriverCandidate, name: str | None = None) -> None:
        with self._lock:
            self._drivers[driver.driver_id] = driver
            if name is not None:
                self._users[driver.driver_id] = UserRecord(user_id=driver.driver_id, name=name)

    def add_rider(self, rider: RiderContext, name: str | None = None) -> None:
        with self._lock:
            self._riders[rider.rider_id] = rider
            if name is not None:
                self._users[rider.rider_id] = UserRecord(user_id=rider.rider_id, name=name)

    def find_user(self, user_id: str) -> UserRecord:
        with self._lock:
            user = self._users.get(user_id)
        if user is None:
            raise NotFoundError(f"User not found with ID: {user_id}", {"user_id": user_id})
        return user

    def find_driver_profile(self, driver_id: str) -> DriverCandidate:
        with self._lock:
            driver = self._drivers.get(driver_id)
        if driver is None:
            raise NotFoundError(
                f"Driver not found with ID: {driver_id}", {"driver_id": driver_id}
            )
        return driver

    def find_rider_profile(self, rider_id: str) -> RiderContext:
        with self._lock:
            rider = self._riders.get(rider_id)
        if rider is None:
            raise NotFoundError(f"Rider not found with ID: {rider_id}", {"rider_id": rider_id})
        return rider

    def find_available_drivers(self) -> Sequence[DriverCandidate]:
        with self._lock:
            return [d for d in self._drivers.values() if d.available]


class RecordingEventSink:
    """Keeps published events in memory, in publish order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: list[tuple[str, dict[str, Any]]] = []

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        with self._lock:
            self.events.append((topic, payload))

    def topics(self) -> list[str]:
        with self._lock:
            return [topic for topic, _ in self.events]
