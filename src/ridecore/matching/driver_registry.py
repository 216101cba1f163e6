import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace

from ridecore.core.exceptions import NotFoundError
from ridecore.core.locks import StripedLock

from .models import DriverCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriverRecord:
    driver_id: str
    available: bool
    active_ride_count: int


class DriverRegistry:
    """Authoritative availability and active ride count per driver.

    Records are seeded from the driver profile the first time a driver is
    seen. Thread-safe: callers that check a record and then change it hold
    ``locked(driver_id)`` across both steps; the stripes are re-entrant so
    the mutators can be called while holding it.
    """

    def __init__(self, stripes: int = 64) -> None:
        self._locks = StripedLock(stripes)
        self._lock = threading.Lock()
        self._drivers: dict[str, DriverRecord] = {}

    @contextmanager
    def locked(self, driver_id: str) -> Iterator[None]:
        with self._locks.hold(driver_id):
            yield

    def ensure(self, candidate: DriverCandidate) -> DriverRecord:
        """Return the record for a driver, seeding it from the profile if new."""
        with self._lock:
            record = self._drivers.get(candidate.driver_id)
            if record is None:
                record = DriverRecord(
                    driver_id=candidate.driver_id,
                    available=candidate.available,
                    active_ride_count=candidate.active_ride_count,
                )
                self._drivers[candidate.driver_id] = record
            return record

    def get(self, driver_id: str) -> DriverRecord | None:
        with self._lock:
            return self._drivers.get(driver_id)

    def overlay(self, candidate: DriverCandidate) -> DriverCandidate:
        """Candidate with registry availability and ride count, if registered."""
        record = self.get(candidate.driver_id)
        if record is None:
            return candidate
        return candidate.model_copy(
            update={
                "available": record.available,
                "active_ride_count": record.active_ride_count,
            }
        )

    def reserve(self, driver_id: str) -> DriverRecord:
        """Driver accepted a trip: unavailable, one more active ride."""
        with self._locks.hold(driver_id):
            record = self._require(driver_id)
            return self._put(
                replace(record, available=False, active_ride_count=record.active_ride_count + 1)
            )

    def release(self, driver_id: str, finished_ride: bool = True) -> DriverRecord:
        """Driver freed from a trip; the ride count never drops below zero."""
        with self._locks.hold(driver_id):
            record = self._require(driver_id)
            count = record.active_ride_count
            if finished_ride:
                count = max(0, count - 1)
            return self._put(replace(record, available=True, active_ride_count=count))

    def set_availability(self, driver_id: str, available: bool) -> DriverRecord:
        with self._locks.hold(driver_id):
            record = self._require(driver_id)
            logger.info("Driver %s availability set to %s", driver_id, available)
            return self._put(replace(record, available=available))

    def unregister(self, driver_id: str) -> None:
        with self._locks.hold(driver_id):
            with self._lock:
                self._drivers.pop(driver_id, None)

    def records(self) -> list[DriverRecord]:
        with self._lock:
            return list(self._drivers.values())

    def clear(self) -> None:
        with self._lock:
            self._drivers.clear()

    def _require(self, driver_id: str) -> DriverRecord:
        record = self.get(driver_id)
        if record is None:
            raise NotFoundError(
                f"Driver {driver_id} is not registered", {"driver_id": driver_id}
            )
        return record

    def _put(self, record: DriverRecord) -> DriverRecord:
        with self._lock:
            self._drivers[record.driver_id] = record
        return record
