from .coupon_repository import SqlCouponStore
from .trip_repository import SqlTripStore

__all__ = ["SqlCouponStore", "SqlTripStore"]
