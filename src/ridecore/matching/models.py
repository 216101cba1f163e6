from pydantic import BaseModel, ConfigDict, field_validator

from ridecore.geo import GeoPoint


class DriverCandidate(BaseModel):
    """Read-only projection of a driver considered for matching.

    Missing rating counts as 0.0 and missing active ride count as 0.
    """

    model_config = ConfigDict(frozen=True)

    driver_id: str
    point: GeoPoint | None = None
    rating: float = 0.0
    active_ride_count: int = 0
    available: bool = True

    @field_validator("rating", mode="before")
    @classmethod
    def default_rating(cls, v: float | None) -> float:
        return 0.0 if v is None else v

    @field_validator("active_ride_count", mode="before")
    @classmethod
    def default_active_rides(cls, v: int | None) -> int:
        return 0 if v is None else v

    @property
    def has_location(self) -> bool:
        return self.point is not None and self.point.is_complete


class RiderContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    rider_id: str
    point: GeoPoint | None = None
