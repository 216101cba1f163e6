import logging
from datetime import datetime

from ridecore.core.clock import Clock, utc_now
from ridecore.core.exceptions import ValidationError
from ridecore.metrics import coupon_redemptions, fare_quotes
from ridecore.ports import CouponStore
from ridecore.ride_logging import log_context

from .calculator import FareCalculator, validate_fare_request
from .coupons import apply_discount
from .models import FareBreakdown, FareRequest

logger = logging.getLogger(__name__)


class FareService:
    """Fare quotes with optional coupon discounts.

    ``calculate_fare`` only previews a coupon. ``settle_fare`` also redeems
    it, so the coupon's usage counter moves once per settled fare.
    """

    def __init__(
        self,
        calculator: FareCalculator,
        coupons: CouponStore,
        clock: Clock = utc_now,
    ) -> None:
        self._calculator = calculator
        self._coupons = coupons
        self._clock = clock

    @property
    def calculator(self) -> FareCalculator:
        return self._calculator

    def calculate_fare(self, request: FareRequest) -> FareBreakdown:
        return self._quote(request, self._clock())

    def settle_fare(self, request: FareRequest) -> FareBreakdown:
        now = self._clock()
        breakdown = self._quote(request, now)
        code = breakdown.applied_coupon_code
        if code is None:
            return breakdown

        with log_context(coupon_code=code):
            if not self._coupons.increment_usage(code, now):
                coupon_redemptions.labels(outcome="rejected").inc()
                logger.warning("Coupon %s could not be redeemed", code)
                raise ValidationError(
                    f"Coupon {code} is no longer valid", {"coupon_code": code}
                )
            coupon_redemptions.labels(outcome="redeemed").inc()
            logger.info("Redeemed coupon %s", code)
        return breakdown

    def _quote(self, request: FareRequest, now: datetime) -> FareBreakdown:
        validate_fare_request(request)
        strategy = self._calculator.select_strategy(request)
        breakdown = strategy.calculate_fare(request).model_copy(update={"calculated_at": now})
        fare_quotes.labels(strategy=strategy.strategy_type).inc()

        code = (request.coupon_code or "").strip()
        if code:
            coupon = self._coupons.find_by_code(code)
            if coupon is None:
                logger.debug("Unknown coupon %s, fare unchanged", code)
            else:
                breakdown = apply_discount(breakdown, coupon, now)
        return breakdown
