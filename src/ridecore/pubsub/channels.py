"""Pub/sub topic definitions and message schemas for live trip updates."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

TOPIC_KINDS = ("trip_location", "trip_status", "driver_status")


def trip_location_topic(trip_id: str) -> str:
    return f"trip/{trip_id}/location"


def trip_status_topic(trip_id: str) -> str:
    return f"trip/{trip_id}/status"


def driver_status_topic(driver_id: str) -> str:
    return f"driver/{driver_id}/status"


def topic_kind(topic: str) -> str:
    """Classify a topic for metric labels ("unknown" if it matches no builder)."""
    parts = topic.split("/")
    if len(parts) == 3:
        kind = f"{parts[0]}_{parts[2]}"
        if kind in TOPIC_KINDS:
            return kind
    return "unknown"


class DriverStatusMessage(BaseModel):
    """Driver status change (arrived, started trip, ...) for trip subscribers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    trip_id: str
    driver_id: str
    status: str
