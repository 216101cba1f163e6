"""Coupon store backed by SQLAlchemy."""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from ridecore.fares.coupons import Coupon, DiscountType

from ..schema import CouponRow
from ..transaction import transaction
from ..utils import from_db_time, to_db_time, utc_now


class SqlCouponStore:
    def __init__(self, session_factory: sessionmaker[Any]):
        self._session_factory = session_factory

    def find_by_code(self, code: str) -> Coupon | None:
        with self._session_factory() as session:
            row = session.get(CouponRow, code)
            return self._to_domain(row) if row is not None else None

    def find_all_valid(self, now: datetime) -> list[Coupon]:
        stmt = select(CouponRow).where(*self._valid_at(now)).order_by(CouponRow.code)
        return self._list(stmt)

    def find_all_active(self) -> list[Coupon]:
        stmt = select(CouponRow).where(CouponRow.active.is_(True)).order_by(CouponRow.code)
        return self._list(stmt)

    def insert(self, coupon: Coupon) -> bool:
        """Add a new coupon; False if the code is already taken."""
        row = CouponRow(
            code=coupon.code,
            used_count=coupon.used_count,
            created_at=to_db_time(coupon.created_at),
            **self._terms(coupon),
        )
        try:
            with self._session_factory() as session, transaction(session):
                session.add(row)
        except IntegrityError:
            return False
        return True

    def update_terms(self, coupon: Coupon) -> Coupon | None:
        """Overwrite the editable terms of a stored coupon.

        ``used_count`` and ``created_at`` are left to the database so a
        concurrent ``increment_usage`` is never lost.
        """
        stmt = (
            update(CouponRow)
            .where(CouponRow.code == coupon.code)
            .values(**self._terms(coupon))
            .execution_options(synchronize_session=False)
        )
        with self._session_factory() as session, transaction(session):
            if session.execute(stmt).rowcount != 1:
                return None
        return self.find_by_code(coupon.code)

    def delete(self, code: str) -> None:
        with self._session_factory() as session, transaction(session):
            session.execute(delete(CouponRow).where(CouponRow.code == code))

    def exists_by_code(self, code: str) -> bool:
        with self._session_factory() as session:
            return session.get(CouponRow, code) is not None

    def increment_usage(self, code: str, now: datetime) -> bool:
        """Single conditional UPDATE; True only if this call took a use."""
        stmt = (
            update(CouponRow)
            .where(CouponRow.code == code, *self._valid_at(now))
            .values(used_count=CouponRow.used_count + 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        with self._session_factory() as session, transaction(session):
            result = session.execute(stmt)
            return result.rowcount == 1

    def _list(self, stmt: Any) -> list[Coupon]:
        with self._session_factory() as session:
            result = session.execute(stmt)
            return [self._to_domain(row) for row in result.scalars().all()]

    @staticmethod
    def _terms(coupon: Coupon) -> dict[str, Any]:
        return {
            "description": coupon.description,
            "discount_type": coupon.discount_type.value,
            "discount_value": coupon.discount_value,
            "minimum_fare": coupon.minimum_fare,
            "maximum_discount": coupon.maximum_discount,
            "valid_from": to_db_time(coupon.valid_from),
            "valid_until": to_db_time(coupon.valid_until),
            "usage_limit": coupon.usage_limit,
            "active": coupon.active,
            "updated_at": to_db_time(coupon.updated_at),
        }

    @staticmethod
    def _valid_at(now: datetime) -> tuple[Any, ...]:
        db_now = to_db_time(now)
        return (
            CouponRow.active.is_(True),
            CouponRow.valid_from <= db_now,
            CouponRow.valid_until >= db_now,
            or_(
                CouponRow.usage_limit.is_(None),
                CouponRow.used_count < CouponRow.usage_limit,
            ),
        )

    @staticmethod
    def _to_domain(row: CouponRow) -> Coupon:
        return Coupon(
            code=row.code,
            description=row.description,
            discount_type=DiscountType(row.discount_type),
            discount_value=row.discount_value,
            minimum_fare=row.minimum_fare,
            maximum_discount=row.maximum_discount,
            valid_from=from_db_time(row.valid_from),
            valid_until=from_db_time(row.valid_until),
            usage_limit=row.usage_limit,
            used_count=row.used_count,
            active=row.active,
            created_at=from_db_time(row.created_at),
            updated_at=from_db_time(row.updated_at),
        )
