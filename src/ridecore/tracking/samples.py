from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ridecore.core.clock import utc_now
from ridecore.geo import GeoPoint


class LocationSample(BaseModel):
    """One GPS fix reported by a driver device.

    ``driver_id`` is optional only because device payloads are not validated
    upstream; the tracker rejects samples without one.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    driver_id: str | None
    trip_id: str | None = None
    point: GeoPoint
    timestamp: datetime = Field(default_factory=utc_now)
    speed: float | None = None  # km/h
    heading: float | None = None  # degrees

    def to_message(self) -> dict:
        """Flat camelCase payload as broadcast on location topics."""
        return {
            "messageType": "LOCATION_UPDATE",
            "driverId": self.driver_id,
            "tripId": self.trip_id,
            "latitude": self.point.latitude,
            "longitude": self.point.longitude,
            "timestamp": self.timestamp.isoformat(),
            "speed": self.speed,
            "heading": self.heading,
        }
