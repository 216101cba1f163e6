"""Driver matching strategies.

Every strategy picks one candidate for a rider, or None. Candidates are
never mutated and ties always go to the earliest candidate in input order.
"""

from collections.abc import Sequence
from typing import Protocol

from ridecore.geo import distance_km

from .models import DriverCandidate, RiderContext


class MatchingStrategy(Protocol):
    name: str

    def match_driver(
        self, rider: RiderContext, candidates: Sequence[DriverCandidate]
    ) -> DriverCandidate | None: ...


class NearestDriverMatcher:
    """Closest candidate to the rider's current location."""

    name = "nearest"

    def match_driver(
        self, rider: RiderContext, candidates: Sequence[DriverCandidate]
    ) -> DriverCandidate | None:
        if not candidates:
            return None

        # Without a rider location every candidate is equally near.
        if rider.point is None or not rider.point.is_complete:
            return candidates[0]

        located = [c for c in candidates if c.has_location]
        if not located:
            return None
        return min(located, key=lambda c: distance_km(rider.point, c.point))


class LeastBusyDriverMatcher:
    """Candidate with the fewest active rides."""

    name = "least-busy"

    def match_driver(
        self, rider: RiderContext, candidates: Sequence[DriverCandidate]
    ) -> DriverCandidate | None:
        if not candidates:
            return None
        return min(candidates, key=lambda c: c.active_ride_count)


class HighRatingDriverMatcher:
    """Highest rated candidate."""

    name = "high-rating"

    def match_driver(
        self, rider: RiderContext, candidates: Sequence[DriverCandidate]
    ) -> DriverCandidate | None:
        if not candidates:
            return None
        return max(candidates, key=lambda c: c.rating)
