"""Driver matching: strategies, candidate search and driver availability."""

from .candidate_pool import CandidatePool
from .driver_registry import DriverRecord, DriverRegistry
from .models import DriverCandidate, RiderContext
from .selector import StrategySelector
from .service import MatchingService
from .strategies import (
    HighRatingDriverMatcher,
    LeastBusyDriverMatcher,
    MatchingStrategy,
    NearestDriverMatcher,
)

__all__ = [
    "CandidatePool",
    "DriverCandidate",
    "DriverRecord",
    "DriverRegistry",
    "HighRatingDriverMatcher",
    "LeastBusyDriverMatcher",
    "MatchingService",
    "MatchingStrategy",
    "NearestDriverMatcher",
    "RiderContext",
    "StrategySelector",
]
