"""Fare request and breakdown models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ridecore.core.clock import utc_now


class RideType(str, Enum):
    ECONOMY = "ECONOMY"
    PREMIUM = "PREMIUM"
    LUXURY = "LUXURY"


RIDE_TYPE_MULTIPLIERS: dict[RideType, float] = {
    RideType.ECONOMY: 1.0,
    RideType.PREMIUM: 1.5,
    RideType.LUXURY: 2.0,
}


def ride_type_multiplier(ride_type: str | None) -> float:
    """Multiplier for a ride type name (case-insensitive, unknown is 1.0)."""
    if ride_type is None:
        return 1.0
    try:
        return RIDE_TYPE_MULTIPLIERS[RideType(ride_type.strip().upper())]
    except ValueError:
        return 1.0


class FareRequest(BaseModel):
    """Input to fare calculation.

    Numeric fields are optional here and checked by FareService, so a
    malformed request surfaces as a ValidationError with a readable message.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    distance_km: float | None = None
    duration_minutes: int | None = None
    ride_time: str | None = None  # ISO-8601 local date-time
    weather_condition: str | None = None
    ride_type: str | None = None
    base_rate_per_km: float | None = None
    coupon_code: str | None = None


class FareBreakdown(BaseModel):
    """Itemized fare quote returned to the caller; never persisted."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    base_fare: float
    distance_fare: float
    time_fare: float
    weather_multiplier: float = 1.0
    time_multiplier: float = 1.0
    ride_type_multiplier: float = 1.0
    subtotal: float
    discount_amount: float = 0.0
    applied_coupon_code: str | None = None
    final_fare: float
    strategy_used: str
    calculated_at: datetime = Field(default_factory=utc_now)
    applied_discounts: tuple[str, ...] = ()

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
