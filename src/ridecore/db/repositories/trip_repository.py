"""Trip store backed by SQLAlchemy."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ridecore.core.exceptions import NotFoundError
from ridecore.geo import GeoPoint
from ridecore.trips.models import (
    ACTIVE_DRIVER_STATES,
    ACTIVE_RIDER_STATES,
    CancelledBy,
    Trip,
    TripState,
)

from ..schema import TripRow
from ..transaction import transaction
from ..utils import from_db_time, to_db_time

_ACTIVE_RIDER = [s.value for s in ACTIVE_RIDER_STATES]
_ACTIVE_DRIVER = [s.value for s in ACTIVE_DRIVER_STATES]


class SqlTripStore:
    """Each call runs in its own session and transaction."""

    def __init__(self, session_factory: sessionmaker[Any]):
        self._session_factory = session_factory

    def save(self, trip: Trip) -> Trip:
        with self._session_factory() as session, transaction(session):
            row = session.get(TripRow, trip.trip_id)
            if row is None:
                row = TripRow(trip_id=trip.trip_id)
                session.add(row)
            self._apply(row, trip)
        return trip.model_copy(deep=True)

    def find_by_id(self, trip_id: str) -> Trip:
        with self._session_factory() as session:
            row = session.get(TripRow, trip_id)
            if row is None:
                raise NotFoundError(f"Trip not found with ID: {trip_id}", {"trip_id": trip_id})
            return self._to_domain(row)

    def find_active_by_rider(self, rider_id: str) -> list[Trip]:
        stmt = select(TripRow).where(
            TripRow.rider_id == rider_id, TripRow.state.in_(_ACTIVE_RIDER)
        )
        return self._list(stmt)

    def find_active_by_driver(self, driver_id: str) -> list[Trip]:
        stmt = select(TripRow).where(
            TripRow.driver_id == driver_id, TripRow.state.in_(_ACTIVE_DRIVER)
        )
        return self._list(stmt)

    def find_history_by_rider(self, rider_id: str) -> list[Trip]:
        stmt = (
            select(TripRow)
            .where(TripRow.rider_id == rider_id)
            .order_by(TripRow.requested_at.desc())
        )
        return self._list(stmt)

    def find_history_by_driver(self, driver_id: str) -> list[Trip]:
        stmt = (
            select(TripRow)
            .where(TripRow.driver_id == driver_id)
            .order_by(TripRow.requested_at.desc())
        )
        return self._list(stmt)

    def _list(self, stmt: Any) -> list[Trip]:
        with self._session_factory() as session:
            result = session.execute(stmt)
            return [self._to_domain(row) for row in result.scalars().all()]

    @staticmethod
    def _apply(row: TripRow, trip: Trip) -> None:
        pickup_lat, pickup_lon = trip.pickup.as_tuple()
        dropoff_lat, dropoff_lon = trip.dropoff.as_tuple()
        row.state = trip.state.value
        row.rider_id = trip.rider_id
        row.driver_id = trip.driver_id
        row.pickup_latitude = pickup_lat
        row.pickup_longitude = pickup_lon
        row.dropoff_latitude = dropoff_lat
        row.dropoff_longitude = dropoff_lon
        row.requested_at = to_db_time(trip.requested_at)
        row.accepted_at = to_db_time(trip.accepted_at)
        row.started_at = to_db_time(trip.started_at)
        row.completed_at = to_db_time(trip.completed_at)
        row.cancelled_at = to_db_time(trip.cancelled_at)
        row.fare_amount = trip.fare_amount
        row.distance_km = trip.distance_km
        row.estimated_duration_minutes = trip.estimated_duration_minutes
        row.cancellation_reason = trip.cancellation_reason
        row.cancelled_by = trip.cancelled_by.value if trip.cancelled_by else None

    @staticmethod
    def _to_domain(row: TripRow) -> Trip:
        """Convert ORM row to domain model."""
        return Trip(
            trip_id=row.trip_id,
            state=TripState(row.state),
            rider_id=row.rider_id,
            driver_id=row.driver_id,
            pickup=GeoPoint(latitude=row.pickup_latitude, longitude=row.pickup_longitude),
            dropoff=GeoPoint(latitude=row.dropoff_latitude, longitude=row.dropoff_longitude),
            requested_at=from_db_time(row.requested_at),
            accepted_at=from_db_time(row.accepted_at),
            started_at=from_db_time(row.started_at),
            completed_at=from_db_time(row.completed_at),
            cancelled_at=from_db_time(row.cancelled_at),
            fare_amount=row.fare_amount,
            distance_km=row.distance_km,
            estimated_duration_minutes=row.estimated_duration_minutes,
            cancellation_reason=row.cancellation_reason,
            cancelled_by=CancelledBy(row.cancelled_by) if row.cancelled_by else None,
        )
