import logging

from ridecore.core.clock import Clock, utc_now
from ridecore.core.exceptions import (
    ActiveTripConflictError,
    InvalidStateTransition,
    NoDriverAvailableError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from ridecore.core.locks import StripedLock
from ridecore.geo import GeoPoint, distance_km
from ridecore.matching import CandidatePool, DriverRecord, DriverRegistry, StrategySelector
from ridecore.metrics import trip_transitions
from ridecore.ports import ProfileLookup, TripStore
from ridecore.ride_logging import log_context, log_trip_context
from ridecore.settings import SettlementSettings

from .events import TripEventPublisher
from .models import CancelledBy, Trip, TripRequest, TripState
from .settlement import estimate_duration_minutes, settlement_fare

logger = logging.getLogger(__name__)


class TripService:
    """Orchestrates trip creation and lifecycle transitions.

    Every transition loads the trip, validates and saves it while holding
    that trip's lock, so concurrent callers are serialized and the loser
    sees the new state. Locks are always taken rider, then trip, then
    driver.
    """

    def __init__(
        self,
        store: TripStore,
        profiles: ProfileLookup,
        pool: CandidatePool,
        registry: DriverRegistry,
        selector: StrategySelector | None = None,
        settlement: SettlementSettings | None = None,
        events: TripEventPublisher | None = None,
        clock: Clock = utc_now,
        stripes: int = 64,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._pool = pool
        self._registry = registry
        self._selector = selector or StrategySelector()
        self._settlement = settlement or SettlementSettings()
        self._events = events or TripEventPublisher()
        self._clock = clock
        self._rider_locks = StripedLock(stripes)
        self._trip_locks = StripedLock(stripes)

    def request_trip(self, request: TripRequest) -> Trip:
        """Create a REQUESTED trip with a matched driver.

        Nothing is saved unless a driver was matched.
        """
        rider = self._profiles.find_rider_profile(request.rider_id)
        pickup = self._require_point(request.pickup_location, "Pickup location")
        dropoff = self._require_point(request.dropoff_location, "Dropoff location")

        with log_context(rider_id=rider.rider_id):
            with self._rider_locks.hold(rider.rider_id):
                if self._store.find_active_by_rider(rider.rider_id):
                    raise ActiveTripConflictError(
                        "Rider already has an active trip", {"rider_id": rider.rider_id}
                    )

                distance = distance_km(pickup, dropoff)
                candidates = self._pool.find_nearby(pickup)
                if not candidates:
                    raise NoDriverAvailableError(
                        "No available drivers found near the pickup location",
                        {"rider_id": rider.rider_id},
                    )

                strategy = self._selector.select(request.matching_strategy)
                matched = strategy.match_driver(rider, candidates)
                if matched is None:
                    raise NoDriverAvailableError(
                        f"No suitable driver found using the {strategy.name} strategy",
                        {"rider_id": rider.rider_id, "candidates": len(candidates)},
                    )

                trip = Trip(
                    rider_id=rider.rider_id,
                    driver_id=matched.driver_id,
                    pickup=pickup,
                    dropoff=dropoff,
                    requested_at=self._clock(),
                    distance_km=distance,
                    estimated_duration_minutes=estimate_duration_minutes(
                        distance, self._settlement
                    ),
                )
                saved = self._store.save(trip)

            with log_trip_context(saved.trip_id, driver_id=matched.driver_id):
                logger.info(
                    "Trip requested, matched driver %s via %s (%.2f km)",
                    matched.driver_id,
                    strategy.name,
                    distance,
                )
        self._record(saved)
        return saved

    def accept_trip(self, trip_id: str, driver_id: str) -> Trip:
        with log_trip_context(trip_id, driver_id=driver_id):
            with self._trip_locks.hold(trip_id):
                trip = self._store.find_by_id(trip_id)
                trip.check_transition(TripState.ACCEPTED)
                profile = self._profiles.find_driver_profile(driver_id)

                with self._registry.locked(driver_id):
                    record = self._registry.ensure(profile)
                    if not record.available:
                        raise InvalidStateTransition(
                            trip.state,
                            TripState.ACCEPTED,
                            "driver is not available",
                            {"trip_id": trip_id, "driver_id": driver_id},
                        )
                    if self._store.find_active_by_driver(driver_id):
                        raise InvalidStateTransition(
                            trip.state,
                            TripState.ACCEPTED,
                            "driver already has an active trip",
                            {"trip_id": trip_id, "driver_id": driver_id},
                        )

                    trip.accept(driver_id, self._clock())
                    saved = self._store.save(trip)
                    self._registry.reserve(driver_id)

            logger.info("Trip accepted")
        self._record(saved)
        return saved

    def start_trip(self, trip_id: str, driver_id: str) -> Trip:
        with log_trip_context(trip_id, driver_id=driver_id):
            with self._trip_locks.hold(trip_id):
                trip = self._store.find_by_id(trip_id)
                trip.check_transition(TripState.STARTED)
                self._require_assigned_driver(trip, driver_id)

                trip.start(self._clock())
                saved = self._store.save(trip)

            logger.info("Trip started")
        self._record(saved)
        return saved

    def complete_trip(self, trip_id: str, driver_id: str) -> Trip:
        with log_trip_context(trip_id, driver_id=driver_id):
            with self._trip_locks.hold(trip_id):
                trip = self._store.find_by_id(trip_id)
                trip.check_transition(TripState.COMPLETED)
                self._require_assigned_driver(trip, driver_id)

                with self._registry.locked(driver_id):
                    self._driver_record(driver_id)
                    fare = settlement_fare(trip.distance_km, self._settlement)
                    trip.complete(fare, self._clock())
                    saved = self._store.save(trip)
                    self._registry.release(driver_id, finished_ride=True)

            logger.info("Trip completed, fare %.2f", fare)
        self._record(saved)
        return saved

    def cancel_trip(
        self,
        trip_id: str,
        cancelled_by: CancelledBy | str,
        user_id: str,
        reason: str | None = None,
    ) -> Trip:
        """Cancel a REQUESTED or ACCEPTED trip on behalf of its rider or driver.

        An accepted driver is released with one fewer active ride. The driver
        matched to a REQUESTED trip was never reserved and is left as is.
        """
        actor = self._parse_canceller(cancelled_by)
        with log_trip_context(trip_id, cancelled_by=actor.value):
            with self._trip_locks.hold(trip_id):
                trip = self._store.find_by_id(trip_id)
                trip.check_transition(TripState.CANCELLED)
                self._require_canceller(trip, actor, user_id)

                if trip.state == TripState.ACCEPTED and trip.driver_id is not None:
                    driver_id = trip.driver_id
                    with self._registry.locked(driver_id):
                        self._driver_record(driver_id)
                        trip.cancel(actor, reason, self._clock())
                        saved = self._store.save(trip)
                        self._registry.release(driver_id, finished_ride=True)
                else:
                    trip.cancel(actor, reason, self._clock())
                    saved = self._store.save(trip)

            logger.info("Trip cancelled by %s", actor.value)
        self._record(saved)
        return saved

    def set_driver_availability(self, driver_id: str, available: bool) -> DriverRecord:
        """Administrative availability toggle for a driver."""
        profile = self._profiles.find_driver_profile(driver_id)
        with self._registry.locked(driver_id):
            self._registry.ensure(profile)
            return self._registry.set_availability(driver_id, available)

    def get_trip(self, trip_id: str) -> Trip:
        return self._store.find_by_id(trip_id)

    def describe_trip(self, trip_id: str) -> dict:
        """Trip response enriched with rider and driver display names."""
        trip = self._store.find_by_id(trip_id)
        rider_name = self._profiles.find_user(trip.rider_id).name
        driver_name = None
        if trip.driver_id is not None:
            driver_name = self._profiles.find_user(trip.driver_id).name
        return trip.to_response(rider_name=rider_name, driver_name=driver_name)

    def get_active_trips_by_rider(self, rider_id: str) -> list[Trip]:
        self._profiles.find_rider_profile(rider_id)
        return self._store.find_active_by_rider(rider_id)

    def get_active_trips_by_driver(self, driver_id: str) -> list[Trip]:
        self._profiles.find_driver_profile(driver_id)
        return self._store.find_active_by_driver(driver_id)

    def get_trip_history_by_rider(self, rider_id: str) -> list[Trip]:
        self._profiles.find_rider_profile(rider_id)
        return self._store.find_history_by_rider(rider_id)

    def get_trip_history_by_driver(self, driver_id: str) -> list[Trip]:
        self._profiles.find_driver_profile(driver_id)
        return self._store.find_history_by_driver(driver_id)

    def _driver_record(self, driver_id: str) -> DriverRecord:
        record = self._registry.get(driver_id)
        if record is None:
            record = self._registry.ensure(self._profiles.find_driver_profile(driver_id))
        return record

    def _record(self, trip: Trip) -> None:
        trip_transitions.labels(state=trip.state.value).inc()
        self._events.publish(trip)

    @staticmethod
    def _require_point(point: GeoPoint | None, label: str) -> GeoPoint:
        if point is None or not point.is_complete:
            raise ValidationError(f"{label} requires latitude and longitude")
        return point

    @staticmethod
    def _require_assigned_driver(trip: Trip, driver_id: str) -> None:
        if trip.driver_id is None or trip.driver_id != driver_id:
            raise UnauthorizedError(
                "Driver is not assigned to this trip",
                {"trip_id": trip.trip_id, "driver_id": driver_id},
            )

    @staticmethod
    def _require_canceller(trip: Trip, actor: CancelledBy, user_id: str) -> None:
        if actor == CancelledBy.RIDER:
            authorized = trip.rider_id == user_id
        else:
            authorized = trip.driver_id is not None and trip.driver_id == user_id
        if not authorized:
            raise UnauthorizedError(
                "User is not authorized to cancel this trip",
                {"trip_id": trip.trip_id, "user_id": user_id, "cancelled_by": actor.value},
            )

    @staticmethod
    def _parse_canceller(cancelled_by: CancelledBy | str) -> CancelledBy:
        if isinstance(cancelled_by, CancelledBy):
            return cancelled_by
        try:
            return CancelledBy(str(cancelled_by).strip().upper())
        except ValueError:
            raise ValidationError(
                f"Unknown canceller {cancelled_by!r}; expected RIDER or DRIVER"
            ) from None
