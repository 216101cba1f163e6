"""SQLAlchemy persistence for trips and coupons."""

from .database import init_database
from .repositories import SqlCouponStore, SqlTripStore
from .transaction import transaction

__all__ = ["SqlCouponStore", "SqlTripStore", "init_database", "transaction"]
