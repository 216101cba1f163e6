"""Fare strategies, coupons and fare quoting."""

from .calculator import FareCalculator
from .coupon_service import CouponService
from .coupons import Coupon, CouponRequest, DiscountType, apply_discount, is_valid
from .models import FareBreakdown, FareRequest, RideType, ride_type_multiplier
from .service import FareService
from .strategies import (
    DaytimeFareStrategy,
    FareStrategy,
    NighttimeFareStrategy,
    WeatherBasedFareStrategy,
)

__all__ = [
    "Coupon",
    "CouponRequest",
    "CouponService",
    "DaytimeFareStrategy",
    "DiscountType",
    "FareBreakdown",
    "FareCalculator",
    "FareRequest",
    "FareService",
    "FareStrategy",
    "NighttimeFareStrategy",
    "RideType",
    "WeatherBasedFareStrategy",
    "apply_discount",
    "is_valid",
    "ride_type_multiplier",
]
