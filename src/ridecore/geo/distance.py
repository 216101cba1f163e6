"""Centralized geographic distance calculations.

Haversine great-circle distance between coordinates. Used for trip distance,
driver proximity searches, and GPS jitter gating in the location tracker.
"""

import math
from math import atan2, cos, radians, sin, sqrt

from .point import GeoPoint

EARTH_RADIUS_KM = 6371.0

# Returned when either side has missing coordinates: "cannot compare",
# never to be read as a real distance.
UNREACHABLE_KM = math.inf


def haversine_distance_km(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate the great-circle distance between two points in kilometers.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance between the two points in kilometers
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def haversine_distance_m(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Great-circle distance in meters; see haversine_distance_km."""
    return haversine_distance_km(lat1, lon1, lat2, lon2) * 1000.0


def distance_km(a: GeoPoint | None, b: GeoPoint | None) -> float:
    """Distance between two points in kilometers.

    Returns UNREACHABLE_KM when either point, or any coordinate, is absent.
    """
    if a is None or b is None or not a.is_complete or not b.is_complete:
        return UNREACHABLE_KM
    lat1, lon1 = a.as_tuple()
    lat2, lon2 = b.as_tuple()
    return haversine_distance_km(lat1, lon1, lat2, lon2)


def distance_m(a: GeoPoint | None, b: GeoPoint | None) -> float:
    """Distance between two points in meters (UNREACHABLE_KM if incomparable)."""
    km = distance_km(a, b)
    return km if math.isinf(km) else km * 1000.0


def is_reachable(km: float) -> bool:
    return not math.isinf(km)
