from datetime import UTC, datetime, timedelta
from itertools import product

import pytest

from ridecore.core.exceptions import InvalidStateTransition
from ridecore.geo import GeoPoint
from ridecore.trips import CancelledBy, Trip, TripState
from ridecore.trips.models import VALID_TRANSITIONS

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

ALLOWED = {
    (TripState.REQUESTED, TripState.ACCEPTED),
    (TripState.REQUESTED, TripState.CANCELLED),
    (TripState.ACCEPTED, TripState.STARTED),
    (TripState.ACCEPTED, TripState.CANCELLED),
    (TripState.STARTED, TripState.COMPLETED),
}


def make_trip(state=TripState.REQUESTED, **overrides):
    defaults = {
        "state": state,
        "rider_id": "rider-1",
        "driver_id": "driver-1",
        "pickup": GeoPoint(latitude=28.6315, longitude=77.2167),
        "dropoff": GeoPoint(latitude=28.6129, longitude=77.2295),
        "requested_at": T0,
        "distance_km": 2.4,
        "estimated_duration_minutes": 4,
    }
    defaults.update(overrides)
    return Trip(**defaults)


@pytest.mark.unit
class TestTransitionTable:
    def test_table_matches_lifecycle(self):
        table = {(a, b) for a, targets in VALID_TRANSITIONS.items() for b in targets}
        assert table == ALLOWED

    @pytest.mark.parametrize("current,target", list(product(TripState, TripState)))
    def test_every_state_pair(self, current, target):
        trip = make_trip(state=current)
        if (current, target) in ALLOWED:
            trip.check_transition(target)
        else:
            with pytest.raises(InvalidStateTransition) as exc_info:
                trip.check_transition(target)
            assert exc_info.value.details["trip_id"] == trip.trip_id
            assert exc_info.value.details["current_state"] == current.value
            assert exc_info.value.details["requested_state"] == target.value

    @pytest.mark.parametrize("state", [TripState.COMPLETED, TripState.CANCELLED])
    def test_terminal_states(self, state):
        assert make_trip(state=state).is_terminal


@pytest.mark.unit
class TestTransitions:
    def test_full_lifecycle_stamps_timestamps(self):
        trip = make_trip(driver_id=None)

        trip.accept("driver-9", T0 + timedelta(minutes=1))
        trip.start(T0 + timedelta(minutes=5))
        trip.complete(86.0, T0 + timedelta(minutes=20))

        assert trip.state == TripState.COMPLETED
        assert trip.driver_id == "driver-9"
        assert trip.accepted_at == T0 + timedelta(minutes=1)
        assert trip.started_at == T0 + timedelta(minutes=5)
        assert trip.completed_at == T0 + timedelta(minutes=20)
        assert trip.fare_amount == 86.0

    def test_timestamps_never_go_backwards(self):
        trip = make_trip()
        trip.accept("driver-1", T0 + timedelta(minutes=10))
        trip.start(T0 + timedelta(minutes=2))

        assert trip.started_at == trip.accepted_at

    def test_naive_time_treated_as_utc(self):
        trip = make_trip()
        trip.accept("driver-1", datetime(2024, 5, 1, 12, 30))
        assert trip.accepted_at == T0 + timedelta(minutes=30)

    def test_cancel_records_actor_and_reason(self):
        trip = make_trip()
        trip.cancel(CancelledBy.RIDER, "changed plans", T0 + timedelta(minutes=1))

        assert trip.state == TripState.CANCELLED
        assert trip.cancelled_by == CancelledBy.RIDER
        assert trip.cancellation_reason == "changed plans"
        assert trip.cancelled_at == T0 + timedelta(minutes=1)

    def test_failed_transition_leaves_trip_untouched(self):
        trip = make_trip(state=TripState.STARTED)
        snapshot = trip.model_dump()

        with pytest.raises(InvalidStateTransition):
            trip.cancel(CancelledBy.DRIVER, "flat tire", T0)

        assert trip.model_dump() == snapshot


@pytest.mark.unit
class TestTripResponse:
    def test_response_shape(self):
        trip = make_trip()
        trip.accept("driver-1", T0 + timedelta(minutes=1))

        response = trip.to_response(rider_name="Asha", driver_name="Ravi")

        assert response["id"] == trip.trip_id
        assert response["state"] == "ACCEPTED"
        assert response["riderName"] == "Asha"
        assert response["driverName"] == "Ravi"
        assert response["pickupLocation"] == {"latitude": 28.6315, "longitude": 77.2167}
        assert response["acceptedAt"] == (T0 + timedelta(minutes=1)).isoformat()
        assert response["startedAt"] is None
        assert response["cancelledBy"] is None
        assert response["estimatedDurationMinutes"] == 4

    def test_camel_case_round_trip(self):
        trip = make_trip()
        dumped = trip.model_dump(by_alias=True)
        assert "riderId" in dumped
        assert Trip.model_validate(dumped) == trip
