import logging
from typing import Any

from ridecore.metrics import event_publish_failures
from ridecore.ports import EventSink
from ridecore.pubsub.channels import (
    DriverStatusMessage,
    driver_status_topic,
    trip_location_topic,
    trip_status_topic,
)

from .location_tracker import LocationTracker
from .samples import LocationSample

logger = logging.getLogger(__name__)


class LiveLocationFeed:
    """Ingests driver location updates and fans accepted ones out to topics.

    Publishing is best-effort: a failing sink is logged and counted, and the
    sample stays accepted.
    """

    def __init__(self, tracker: LocationTracker, sink: EventSink | None = None) -> None:
        self._tracker = tracker
        self._sink = sink

    @property
    def tracker(self) -> LocationTracker:
        return self._tracker

    def ingest(self, sample: LocationSample) -> bool:
        accepted = self._tracker.ingest(sample)
        if not accepted or self._sink is None:
            return accepted

        message = sample.to_message()
        if sample.trip_id:
            self._publish(trip_location_topic(sample.trip_id), message, "trip_location")
        self._publish(driver_status_topic(sample.driver_id), message, "driver_status")
        return accepted

    def publish_driver_status(self, trip_id: str, driver_id: str, status: str) -> bool:
        """Broadcast a driver status (arrived, started, ...) to trip subscribers.

        Returns False without publishing when any field is missing.
        """
        if not trip_id or not driver_id or not status or self._sink is None:
            return False
        message = DriverStatusMessage(trip_id=trip_id, driver_id=driver_id, status=status)
        return self._publish(
            trip_status_topic(trip_id),
            message.model_dump(mode="json", by_alias=True),
            "trip_status",
        )

    def _publish(self, topic: str, payload: dict[str, Any], topic_kind: str) -> bool:
        assert self._sink is not None
        try:
            self._sink.publish(topic, payload)
            return True
        except Exception:
            event_publish_failures.labels(topic_kind=topic_kind).inc()
            logger.exception("Failed to publish to %s", topic)
            return False
