"""Fare strategies.

Each strategy reports whether it applies to a request and computes an
itemized breakdown. Requests are assumed validated (positive distance,
duration and base rate).
"""

from datetime import datetime
from typing import Protocol

from .models import FareBreakdown, FareRequest, ride_type_multiplier

WEATHER_BASED = "WEATHER_BASED"
NIGHTTIME = "NIGHTTIME"
DAYTIME = "DAYTIME"

STANDARD_BASE_FARE = 2.0
STANDARD_PER_MINUTE = 0.5

NIGHT_BASE_FARE = 3.0
NIGHT_PER_MINUTE = 0.75
NIGHT_MULTIPLIER = 1.5
NIGHT_START_HOUR = 22
NIGHT_END_HOUR = 6

SURGE_WEATHER = frozenset({"RAIN", "SNOW", "STORM", "FOG", "HEAVY_RAIN", "BLIZZARD"})

WEATHER_MULTIPLIERS: dict[str, float] = {
    "CLEAR": 1.0,
    "SUNNY": 1.0,
    "PARTLY_CLOUDY": 1.0,
    "CLOUDY": 1.1,
    "OVERCAST": 1.1,
    "RAIN": 1.3,
    "DRIZZLE": 1.3,
    "HEAVY_RAIN": 1.5,
    "STORM": 1.5,
    "SNOW": 1.4,
    "LIGHT_SNOW": 1.4,
    "BLIZZARD": 1.8,
    "HEAVY_SNOW": 1.8,
    "FOG": 1.2,
    "MIST": 1.2,
}


class FareStrategy(Protocol):
    strategy_type: str

    def is_applicable(self, request: FareRequest) -> bool: ...

    def calculate_fare(self, request: FareRequest) -> FareBreakdown: ...


def parse_ride_hour(ride_time: str | None) -> int | None:
    """Hour of an ISO-8601 date-time string, or None if absent or unparsable.

    Date-only strings carry no hour and count as unparsable. Any UTC offset
    is ignored: the hour is read as the rider's local time.
    """
    if not ride_time or len(ride_time.strip()) <= len("YYYY-MM-DD"):
        return None
    try:
        return datetime.fromisoformat(ride_time.strip()).hour
    except ValueError:
        return None


def weather_multiplier(condition: str | None) -> float:
    if condition is None:
        return 1.0
    return WEATHER_MULTIPLIERS.get(condition.strip().upper(), 1.0)


def _surcharge_note(label: str, multiplier: float) -> str:
    return f"{label}: {(multiplier - 1) * 100:.0f}%"


def _build(
    strategy_type: str,
    request: FareRequest,
    base_fare: float,
    distance_fare: float,
    time_fare: float,
    weather: float,
    time: float,
    notes: list[str],
) -> FareBreakdown:
    ride_type = ride_type_multiplier(request.ride_type)
    subtotal = (base_fare + distance_fare + time_fare) * ride_type
    if ride_type != 1.0:
        notes.append(f"Ride type multiplier: {ride_type}")
    return FareBreakdown(
        base_fare=base_fare,
        distance_fare=distance_fare,
        time_fare=time_fare,
        weather_multiplier=weather,
        time_multiplier=time,
        ride_type_multiplier=ride_type,
        subtotal=subtotal,
        final_fare=subtotal,
        strategy_used=strategy_type,
        applied_discounts=tuple(notes),
    )


class WeatherBasedFareStrategy:
    """Surge pricing for adverse weather."""

    strategy_type = WEATHER_BASED

    def is_applicable(self, request: FareRequest) -> bool:
        if request.weather_condition is None:
            return False
        return request.weather_condition.strip().upper() in SURGE_WEATHER

    def calculate_fare(self, request: FareRequest) -> FareBreakdown:
        weather = weather_multiplier(request.weather_condition)
        notes = []
        if weather > 1.0:
            notes.append(_surcharge_note("Weather surge pricing", weather))
        return _build(
            self.strategy_type,
            request,
            base_fare=STANDARD_BASE_FARE,
            distance_fare=request.distance_km * request.base_rate_per_km * weather,
            time_fare=request.duration_minutes * STANDARD_PER_MINUTE,
            weather=weather,
            time=1.0,
            notes=notes,
        )


class NighttimeFareStrategy:
    """Higher base and per-minute rates between 22:00 and 06:00."""

    strategy_type = NIGHTTIME

    def is_applicable(self, request: FareRequest) -> bool:
        hour = parse_ride_hour(request.ride_time)
        if hour is None:
            return False
        return hour >= NIGHT_START_HOUR or hour < NIGHT_END_HOUR

    def calculate_fare(self, request: FareRequest) -> FareBreakdown:
        return _build(
            self.strategy_type,
            request,
            base_fare=NIGHT_BASE_FARE,
            distance_fare=request.distance_km * request.base_rate_per_km * NIGHT_MULTIPLIER,
            time_fare=request.duration_minutes * NIGHT_PER_MINUTE * NIGHT_MULTIPLIER,
            weather=1.0,
            time=NIGHT_MULTIPLIER,
            notes=[_surcharge_note("Nighttime surcharge", NIGHT_MULTIPLIER)],
        )


class DaytimeFareStrategy:
    """Standard rates; also the default when the ride time is unknown."""

    strategy_type = DAYTIME

    def is_applicable(self, request: FareRequest) -> bool:
        hour = parse_ride_hour(request.ride_time)
        if hour is None:
            return True
        return NIGHT_END_HOUR <= hour < NIGHT_START_HOUR

    def calculate_fare(self, request: FareRequest) -> FareBreakdown:
        return _build(
            self.strategy_type,
            request,
            base_fare=STANDARD_BASE_FARE,
            distance_fare=request.distance_km * request.base_rate_per_km,
            time_fare=request.duration_minutes * STANDARD_PER_MINUTE,
            weather=1.0,
            time=1.0,
            notes=[],
        )


def default_strategies() -> list[FareStrategy]:
    return [WeatherBasedFareStrategy(), NighttimeFareStrategy(), DaytimeFareStrategy()]
