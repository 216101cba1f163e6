"""Flat settlement formula applied when a trip completes.

Deliberately independent of the fare strategies used for quotes.
"""

from ridecore.settings import SettlementSettings


def settlement_fare(distance_km: float, settings: SettlementSettings) -> float:
    return settings.base_fare + distance_km * settings.per_km_rate


def estimate_duration_minutes(distance_km: float, settings: SettlementSettings) -> int:
    return int(distance_km * settings.minutes_per_km)
