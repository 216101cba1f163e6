from unittest.mock import Mock

import pytest

from ridecore.metrics import sample_value
from ridecore.tracking import LiveLocationFeed, LocationSample, LocationTracker
from tests.factories import CONNAUGHT_PLACE, point


@pytest.fixture
def feed(clock, sink):
    return LiveLocationFeed(LocationTracker(clock=clock), sink)


def sample(clock, trip_id=None, driver_id="driver-7"):
    return LocationSample(
        driver_id=driver_id,
        trip_id=trip_id,
        point=point(CONNAUGHT_PLACE),
        timestamp=clock(),
        speed=32.5,
        heading=90.0,
    )


@pytest.mark.unit
class TestLiveLocationFeed:
    def test_accepted_sample_goes_to_trip_and_driver_topics(self, feed, sink, clock):
        assert feed.ingest(sample(clock, trip_id="trip-1")) is True

        assert sink.topics() == ["trip/trip-1/location", "driver/driver-7/status"]
        _, payload = sink.events[0]
        assert payload["messageType"] == "LOCATION_UPDATE"
        assert payload["driverId"] == "driver-7"
        assert payload["tripId"] == "trip-1"
        assert payload["latitude"] == CONNAUGHT_PLACE[0]
        assert payload["longitude"] == CONNAUGHT_PLACE[1]
        assert payload["speed"] == 32.5
        assert payload["timestamp"] == clock().isoformat()

    def test_sample_without_trip_only_goes_to_driver_topic(self, feed, sink, clock):
        feed.ingest(sample(clock))
        assert sink.topics() == ["driver/driver-7/status"]

    def test_rejected_sample_is_not_published(self, feed, sink, clock):
        feed.ingest(sample(clock))
        assert feed.ingest(sample(clock)) is False
        assert len(sink.events) == 1

    def test_without_sink_still_tracks(self, clock):
        feed = LiveLocationFeed(LocationTracker(clock=clock))
        assert feed.ingest(sample(clock)) is True
        assert feed.tracker.latest("driver-7") is not None

    def test_sink_failure_keeps_sample_accepted(self, clock):
        failing = Mock()
        failing.publish.side_effect = RuntimeError("broker down")
        feed = LiveLocationFeed(LocationTracker(clock=clock), failing)

        before = sample_value(
            "ridecore_event_publish_failures_total", {"topic_kind": "driver_status"}
        )
        assert feed.ingest(sample(clock)) is True
        after = sample_value(
            "ridecore_event_publish_failures_total", {"topic_kind": "driver_status"}
        )
        assert after == before + 1
        assert feed.tracker.latest("driver-7") is not None


@pytest.mark.unit
class TestDriverStatus:
    def test_publishes_to_trip_status_topic(self, feed, sink):
        assert feed.publish_driver_status("trip-9", "driver-7", "ARRIVED") is True
        assert sink.events == [
            ("trip/trip-9/status", {"tripId": "trip-9", "driverId": "driver-7", "status": "ARRIVED"})
        ]

    @pytest.mark.parametrize(
        "trip_id,driver_id,status",
        [(None, "driver-7", "ARRIVED"), ("trip-9", "", "ARRIVED"), ("trip-9", "driver-7", None)],
    )
    def test_missing_fields_are_not_published(self, feed, sink, trip_id, driver_id, status):
        assert feed.publish_driver_status(trip_id, driver_id, status) is False
        assert sink.events == []

    def test_no_sink(self, clock):
        feed = LiveLocationFeed(LocationTracker(clock=clock))
        assert feed.publish_driver_status("trip-9", "driver-7", "ARRIVED") is False
