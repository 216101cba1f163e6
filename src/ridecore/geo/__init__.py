"""Geographic value types and distance functions."""

from .distance import (
    EARTH_RADIUS_KM,
    UNREACHABLE_KM,
    distance_km,
    distance_m,
    haversine_distance_km,
    haversine_distance_m,
    is_reachable,
)
from .point import GeoPoint

__all__ = [
    "EARTH_RADIUS_KM",
    "UNREACHABLE_KM",
    "GeoPoint",
    "distance_km",
    "distance_m",
    "haversine_distance_km",
    "haversine_distance_m",
    "is_reachable",
]
