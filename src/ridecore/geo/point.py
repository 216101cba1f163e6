from pydantic import BaseModel, ConfigDict


class GeoPoint(BaseModel):
    """Immutable latitude/longitude pair in degrees.

    Coordinates may be missing when an upstream payload omitted them; such a
    point is not *complete* and cannot be used in distance comparisons.
    Range is not validated.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float | None
    longitude: float | None

    @property
    def is_complete(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def as_tuple(self) -> tuple[float, float]:
        if self.latitude is None or self.longitude is None:
            raise ValueError("GeoPoint has missing coordinates")
        return (self.latitude, self.longitude)
