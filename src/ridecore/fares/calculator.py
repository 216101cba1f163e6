import logging
from collections.abc import Sequence

from ridecore.core.exceptions import ConfigurationError, ValidationError
from ridecore.settings import FARE_STRATEGY_TYPES

from .models import FareBreakdown, FareRequest
from .strategies import FareStrategy, default_strategies

logger = logging.getLogger(__name__)


def validate_fare_request(request: FareRequest) -> None:
    if request.distance_km is None or request.distance_km <= 0:
        raise ValidationError("Distance must be greater than 0")
    if request.duration_minutes is None or request.duration_minutes <= 0:
        raise ValidationError("Duration must be greater than 0")
    if request.base_rate_per_km is None or request.base_rate_per_km <= 0:
        raise ValidationError("Base rate must be greater than 0")


class FareCalculator:
    """Picks a fare strategy by explicit priority and computes the quote.

    The first applicable strategy in ``priority`` wins. When none applies
    the first registered strategy is used.
    """

    def __init__(
        self,
        strategies: Sequence[FareStrategy] | None = None,
        priority: Sequence[str] = FARE_STRATEGY_TYPES,
    ) -> None:
        self._strategies = list(strategies) if strategies is not None else default_strategies()
        if not self._strategies:
            raise ConfigurationError("At least one fare strategy must be registered")
        self._by_type = {s.strategy_type: s for s in self._strategies}
        unknown = [t for t in priority if t not in self._by_type]
        if unknown:
            raise ConfigurationError(
                "Fare priority names unregistered strategies",
                {"unknown": unknown, "registered": list(self._by_type)},
            )
        self._priority = tuple(priority)

    @property
    def priority(self) -> tuple[str, ...]:
        return self._priority

    def select_strategy(self, request: FareRequest) -> FareStrategy:
        for strategy_type in self._priority:
            strategy = self._by_type[strategy_type]
            if strategy.is_applicable(request):
                return strategy
        fallback = self._strategies[0]
        logger.debug("No fare strategy applicable, falling back to %s", fallback.strategy_type)
        return fallback

    def calculate_fare(self, request: FareRequest) -> FareBreakdown:
        validate_fare_request(request)
        return self.select_strategy(request).calculate_fare(request)

    def available_strategies(self) -> list[FareStrategy]:
        return list(self._strategies)

    def get_strategy_by_type(self, strategy_type: str) -> FareStrategy | None:
        return self._by_type.get(strategy_type.strip().upper())
