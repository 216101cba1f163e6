import logging

from ridecore.metrics import event_publish_failures
from ridecore.ports import EventSink
from ridecore.pubsub.channels import trip_status_topic

from .models import Trip

logger = logging.getLogger(__name__)


class TripEventPublisher:
    """Broadcasts trip responses to ``trip/{id}/status`` after each transition.

    A missing sink makes this a no-op; sink failures are logged and counted
    but never fail the transition that triggered them.
    """

    def __init__(self, sink: EventSink | None = None) -> None:
        self._sink = sink

    def publish(self, trip: Trip) -> None:
        if self._sink is None:
            return
        topic = trip_status_topic(trip.trip_id)
        try:
            self._sink.publish(topic, trip.to_response())
        except Exception:
            event_publish_failures.labels(topic_kind="trip_status").inc()
            logger.exception("Failed to publish trip %s state %s", trip.trip_id, trip.state.value)
