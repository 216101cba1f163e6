import logging

from ridecore.core.clock import Clock, as_utc, utc_now
from ridecore.core.exceptions import NotFoundError, ValidationError
from ridecore.ports import CouponStore
from ridecore.ride_logging import log_context

from .coupons import Coupon, CouponRequest, DiscountType

logger = logging.getLogger(__name__)


class CouponService:
    """Coupon administration: create, update, delete and list by code."""

    def __init__(self, store: CouponStore, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    def create_coupon(self, request: CouponRequest) -> Coupon:
        code = (request.code or "").strip()
        if not code:
            raise ValidationError("Coupon code is required")
        self._validate_fields(request)

        now = self._clock()
        coupon = Coupon(
            code=code,
            description=request.description,
            discount_type=request.discount_type,
            discount_value=request.discount_value,
            minimum_fare=request.minimum_fare,
            maximum_discount=request.maximum_discount,
            valid_from=request.valid_from,
            valid_until=request.valid_until,
            usage_limit=request.usage_limit,
            active=request.active,
            created_at=now,
            updated_at=now,
        )
        with log_context(coupon_code=code):
            if not self._store.insert(coupon):
                raise ValidationError(
                    f"Coupon code already exists: {code}", {"coupon_code": code}
                )
            logger.info("Created coupon %s", code)
        return coupon

    def update_coupon(self, code: str, request: CouponRequest) -> Coupon:
        """Replace a coupon's terms; the code and usage count are kept."""
        coupon = self.get_coupon(code)
        self._validate_fields(request)
        updated = coupon.model_copy(
            update={
                "description": request.description,
                "discount_type": request.discount_type,
                "discount_value": request.discount_value,
                "minimum_fare": request.minimum_fare,
                "maximum_discount": request.maximum_discount,
                "valid_from": request.valid_from,
                "valid_until": request.valid_until,
                "usage_limit": request.usage_limit,
                "active": request.active,
                "updated_at": self._clock(),
            }
        )
        # model_copy skips validation; re-validate to normalize datetimes.
        updated = Coupon.model_validate(updated.model_dump())
        with log_context(coupon_code=code):
            saved = self._store.update_terms(updated)
            if saved is None:
                raise NotFoundError(f"Coupon not found: {code}", {"coupon_code": code})
            logger.info("Updated coupon %s", code)
        return saved

    def delete_coupon(self, code: str) -> None:
        if not self._store.exists_by_code(code):
            raise NotFoundError(f"Coupon not found: {code}", {"coupon_code": code})
        self._store.delete(code)
        logger.info("Deleted coupon %s", code, extra={"coupon_code": code})

    def get_coupon(self, code: str) -> Coupon:
        coupon = self._store.find_by_code(code)
        if coupon is None:
            raise NotFoundError(f"Coupon not found: {code}", {"coupon_code": code})
        return coupon

    def list_active_coupons(self) -> list[Coupon]:
        return self._store.find_all_active()

    def list_valid_coupons(self) -> list[Coupon]:
        return self._store.find_all_valid(self._clock())

    @staticmethod
    def _validate_fields(request: CouponRequest) -> None:
        if request.discount_type is None:
            raise ValidationError("Discount type is required")
        if request.discount_value is None or request.discount_value <= 0:
            raise ValidationError("Discount value must be greater than 0")
        if request.discount_type == DiscountType.PERCENTAGE and request.discount_value > 100:
            raise ValidationError("Percentage discount cannot exceed 100%")
        if request.valid_from is None or request.valid_until is None:
            raise ValidationError("Valid from and valid until dates are required")
        if as_utc(request.valid_from) >= as_utc(request.valid_until):
            raise ValidationError("Valid from date must be before valid until date")
