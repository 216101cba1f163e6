"""Coupon model and discount rules.

Validity is derived on every use from the active flag, the validity window
and the usage counter; nothing here changes the counter.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ridecore.core.clock import as_utc, utc_now

from .models import FareBreakdown


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class Coupon(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    code: str
    description: str | None = None
    discount_type: DiscountType
    discount_value: float
    minimum_fare: float | None = None
    maximum_discount: float | None = None
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None = None
    used_count: int = 0
    active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("valid_from", "valid_until", "created_at", "updated_at")
    @classmethod
    def normalize_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def remaining_uses(self) -> int | None:
        if self.usage_limit is None:
            return None
        return max(0, self.usage_limit - self.used_count)


class CouponRequest(BaseModel):
    """Create/update payload for coupon administration."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    code: str | None = None
    description: str | None = None
    discount_type: DiscountType | None = None
    discount_value: float | None = None
    minimum_fare: float | None = None
    maximum_discount: float | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    usage_limit: int | None = None
    active: bool = True


def is_valid(coupon: Coupon, now: datetime) -> bool:
    now = as_utc(now)
    if not coupon.active:
        return False
    if not (coupon.valid_from <= now <= coupon.valid_until):
        return False
    return coupon.usage_limit is None or coupon.used_count < coupon.usage_limit


def discount_for(subtotal: float, coupon: Coupon) -> float:
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = subtotal * coupon.discount_value / 100.0
    else:
        discount = coupon.discount_value
    if coupon.maximum_discount is not None:
        discount = min(discount, coupon.maximum_discount)
    return discount


def apply_discount(breakdown: FareBreakdown, coupon: Coupon, now: datetime) -> FareBreakdown:
    """Return a copy of the breakdown with the coupon's discount applied.

    The breakdown is returned unchanged when the coupon is not valid at
    ``now`` or the subtotal is below the coupon's minimum fare.
    """
    if not is_valid(coupon, now):
        return breakdown
    if coupon.minimum_fare is not None and breakdown.subtotal < coupon.minimum_fare:
        return breakdown

    discount = discount_for(breakdown.subtotal, coupon)
    return breakdown.model_copy(
        update={
            "discount_amount": discount,
            "applied_coupon_code": coupon.code,
            "final_fare": max(0.0, breakdown.subtotal - discount),
            "applied_discounts": (
                *breakdown.applied_discounts,
                f"Coupon {coupon.code}: -{discount:.2f}",
            ),
        }
    )
