import logging

from ridecore.settings import MatchingSettings

from .strategies import (
    HighRatingDriverMatcher,
    LeastBusyDriverMatcher,
    MatchingStrategy,
    NearestDriverMatcher,
)

logger = logging.getLogger(__name__)

FALLBACK_STRATEGY = "nearest"


class StrategySelector:
    """Resolves a strategy key to a matcher.

    Keys are case-insensitive. No key means the configured default; an
    unknown key falls back to nearest.
    """

    def __init__(self, settings: MatchingSettings | None = None) -> None:
        self._default = (settings or MatchingSettings()).default_strategy
        self._strategies: dict[str, MatchingStrategy] = {
            s.name: s
            for s in (NearestDriverMatcher(), LeastBusyDriverMatcher(), HighRatingDriverMatcher())
        }

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(self._strategies)

    def select(self, key: str | None = None) -> MatchingStrategy:
        if key is None:
            return self._strategies[self._default]
        strategy = self._strategies.get(key.strip().lower())
        if strategy is None:
            logger.warning("Unknown matching strategy %r, using %s", key, FALLBACK_STRATEGY)
            return self._strategies[FALLBACK_STRATEGY]
        return strategy
