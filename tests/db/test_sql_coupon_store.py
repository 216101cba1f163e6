from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest

from ridecore.db import SqlCouponStore, init_database
from ridecore.fares import Coupon, DiscountType

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def store(temp_sqlite_url):
    return SqlCouponStore(init_database(temp_sqlite_url))


def coupon(code="SAVE10", **overrides):
    defaults = {
        "code": code,
        "discount_type": DiscountType.PERCENTAGE,
        "discount_value": 10.0,
        "valid_from": NOW - timedelta(days=1),
        "valid_until": NOW + timedelta(days=1),
        "created_at": NOW,
        "updated_at": NOW,
    }
    defaults.update(overrides)
    return Coupon(**defaults)


@pytest.mark.unit
class TestSqlCouponStore:
    def test_insert_find_exists_delete(self, store):
        original = coupon(maximum_discount=25.0, minimum_fare=5.0)
        assert store.insert(original) is True

        assert store.exists_by_code("SAVE10")
        assert store.find_by_code("SAVE10") == original

        store.delete("SAVE10")
        assert store.find_by_code("SAVE10") is None
        assert not store.exists_by_code("SAVE10")

    def test_insert_rejects_taken_code(self, store):
        store.insert(coupon())

        assert store.insert(coupon(discount_value=15.0)) is False
        assert store.find_by_code("SAVE10").discount_value == 10.0

    def test_update_terms_keeps_usage_and_creation(self, store):
        store.insert(coupon(usage_limit=3))
        store.increment_usage("SAVE10", NOW)

        later = NOW + timedelta(minutes=5)
        updated = store.update_terms(
            coupon(
                discount_value=20.0,
                usage_limit=5,
                used_count=0,
                created_at=later,
                updated_at=later,
            )
        )

        assert updated.discount_value == 20.0
        assert updated.usage_limit == 5
        assert updated.used_count == 1
        assert updated.created_at == NOW
        assert updated.updated_at == later

    def test_update_terms_missing(self, store):
        assert store.update_terms(coupon("MISSING")) is None

    def test_valid_and_active_listing(self, store):
        store.insert(coupon("B-VALID"))
        store.insert(coupon("A-VALID"))
        store.insert(coupon("C-OFF", active=False))
        store.insert(coupon("D-USED", usage_limit=1, used_count=1))
        store.insert(coupon("E-EXPIRED", valid_until=NOW - timedelta(hours=1)))

        assert [c.code for c in store.find_all_valid(NOW)] == ["A-VALID", "B-VALID"]
        assert [c.code for c in store.find_all_active()] == [
            "A-VALID",
            "B-VALID",
            "D-USED",
            "E-EXPIRED",
        ]

    def test_increment_usage_respects_limit(self, store):
        store.insert(coupon(usage_limit=2))

        assert store.increment_usage("SAVE10", NOW) is True
        assert store.increment_usage("SAVE10", NOW) is True
        assert store.increment_usage("SAVE10", NOW) is False
        assert store.find_by_code("SAVE10").used_count == 2

    def test_increment_usage_outside_window(self, store):
        store.insert(coupon())
        assert store.increment_usage("SAVE10", NOW + timedelta(days=2)) is False
        assert store.increment_usage("MISSING", NOW) is False


@pytest.mark.slow
def test_concurrent_increment_takes_single_use_once(store):
    store.insert(coupon("ONCE", usage_limit=1))

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda _: store.increment_usage("ONCE", NOW), range(16)))

    assert results.count(True) == 1
    assert store.find_by_code("ONCE").used_count == 1
