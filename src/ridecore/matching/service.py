import logging

from ridecore.ports import ProfileLookup

from .candidate_pool import CandidatePool
from .models import DriverCandidate
from .selector import StrategySelector

logger = logging.getLogger(__name__)


class MatchingService:
    """Driver match previews for a rider, without creating a trip.

    Nothing is reserved: the driver returned here may be matched to
    someone else before the rider actually requests a trip.
    """

    def __init__(
        self,
        profiles: ProfileLookup,
        pool: CandidatePool,
        selector: StrategySelector | None = None,
    ) -> None:
        self._profiles = profiles
        self._pool = pool
        self._selector = selector or StrategySelector()

    def match_driver_for_rider(
        self,
        rider_id: str,
        strategy_key: str | None = None,
        radius_km: float | None = None,
    ) -> DriverCandidate | None:
        """Best driver for the rider under the given strategy, or None.

        Riders with a known location are matched against drivers within
        ``radius_km`` of it; riders without one against every available
        driver. Raises NotFoundError for an unknown rider.
        """
        rider = self._profiles.find_rider_profile(rider_id)
        if rider.point is not None and rider.point.is_complete:
            candidates = self._pool.find_nearby(rider.point, radius_km)
        else:
            candidates = self._pool.find_available()

        strategy = self._selector.select(strategy_key)
        matched = strategy.match_driver(rider, candidates)
        logger.debug(
            "Match preview for rider %s via %s: %s of %d candidates",
            rider_id,
            strategy.name,
            matched.driver_id if matched else "none",
            len(candidates),
            extra={"rider_id": rider_id},
        )
        return matched

    def match_nearest_driver(self, rider_id: str) -> DriverCandidate | None:
        return self.match_driver_for_rider(rider_id, "nearest")

    def match_least_busy_driver(self, rider_id: str) -> DriverCandidate | None:
        return self.match_driver_for_rider(rider_id, "least-busy")

    def match_high_rating_driver(self, rider_id: str) -> DriverCandidate | None:
        return self.match_driver_for_rider(rider_id, "high-rating")
