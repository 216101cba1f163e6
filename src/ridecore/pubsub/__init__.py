from .channels import (
    DriverStatusMessage,
    driver_status_topic,
    topic_kind,
    trip_location_topic,
    trip_status_topic,
)
from .redis_sink import RedisEventSink

__all__ = [
    "DriverStatusMessage",
    "RedisEventSink",
    "driver_status_topic",
    "topic_kind",
    "trip_location_topic",
    "trip_status_topic",
]
