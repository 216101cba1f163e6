import pytest

from ridecore.bootstrap import build_ride_engine
from ridecore.db import SqlCouponStore, SqlTripStore
from ridecore.fares import FareRequest
from ridecore.settings import DatabaseSettings, Settings
from ridecore.stores import InMemoryTripStore
from ridecore.tracking import LocationSample
from ridecore.trips import TripRequest, TripState
from tests.factories import CONNAUGHT_PLACE, INDIA_GATE, NOIDA, point


@pytest.mark.unit
class TestBuildRideEngine:
    def test_in_memory_wiring(self, engine):
        assert isinstance(engine.trip_store, InMemoryTripStore)
        assert engine.candidate_pool is not None
        assert engine.live_feed.tracker is engine.tracker

    def test_sql_wiring(self, profiles, sink, clock, temp_sqlite_url):
        settings = Settings(database=DatabaseSettings(url=temp_sqlite_url))
        engine = build_ride_engine(profiles, settings=settings, sink=sink, clock=clock)

        assert isinstance(engine.trip_store, SqlTripStore)
        assert isinstance(engine.coupon_store, SqlCouponStore)

    def test_end_to_end_on_sql(self, profiles, profile_factory, sink, clock, temp_sqlite_url):
        settings = Settings(database=DatabaseSettings(url=temp_sqlite_url))
        engine = build_ride_engine(profiles, settings=settings, sink=sink, clock=clock)
        rider = profile_factory.add_rider(profiles, CONNAUGHT_PLACE)
        # Profile has no location; the live feed supplies it.
        driver = profile_factory.add_driver(profiles, None)
        engine.live_feed.ingest(
            LocationSample(driver_id=driver.driver_id, point=point(INDIA_GATE), timestamp=clock())
        )

        trip = engine.trips.request_trip(
            TripRequest(
                rider_id=rider.rider_id,
                pickup_location=point(CONNAUGHT_PLACE),
                dropoff_location=point(NOIDA),
            )
        )
        engine.trips.accept_trip(trip.trip_id, driver.driver_id)
        engine.trips.start_trip(trip.trip_id, driver.driver_id)
        done = engine.trips.complete_trip(trip.trip_id, driver.driver_id)

        assert done.state == TripState.COMPLETED
        assert engine.trip_store.find_by_id(trip.trip_id).fare_amount == pytest.approx(
            50.0 + trip.distance_km * 15.0
        )
        assert f"driver/{driver.driver_id}/status" in sink.topics()

    def test_fare_priority_from_settings(self, profiles, sink, clock):
        settings = Settings()
        settings.fare.strategy_priority = ("NIGHTTIME", "WEATHER_BASED", "DAYTIME")
        engine = build_ride_engine(profiles, settings=settings, sink=sink, clock=clock, in_memory=True)

        fare = engine.fares.calculate_fare(
            FareRequest(
                distance_km=5.0,
                duration_minutes=10,
                base_rate_per_km=2.0,
                weather_condition="RAIN",
                ride_time="2024-05-01T23:00:00",
            )
        )
        assert fare.strategy_used == "NIGHTTIME"
