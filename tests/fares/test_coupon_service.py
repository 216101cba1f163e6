from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from ridecore.core.exceptions import NotFoundError, ValidationError
from ridecore.fares import CouponService, DiscountType, FareCalculator, FareRequest, FareService
from ridecore.stores import InMemoryCouponStore


class RedeemOnReadStore(InMemoryCouponStore):
    """Runs a one-shot callback right after the next coupon read."""

    def __init__(self) -> None:
        super().__init__()
        self.after_read = None

    def find_by_code(self, code):
        found = super().find_by_code(code)
        callback, self.after_read = self.after_read, None
        if callback is not None:
            callback()
        return found


@pytest.fixture
def service(clock):
    return CouponService(InMemoryCouponStore(), clock=clock)


@pytest.mark.unit
class TestCreateCoupon:
    def test_create(self, service, profile_factory, clock):
        created = service.create_coupon(profile_factory.coupon_request(clock(), code=" WELCOME "))

        assert created.code == "WELCOME"
        assert created.used_count == 0
        assert created.created_at == clock()
        assert service.get_coupon("WELCOME") == created

    def test_duplicate_code(self, service, profile_factory, clock):
        service.create_coupon(profile_factory.coupon_request(clock(), code="DUP"))
        with pytest.raises(ValidationError, match="already exists"):
            service.create_coupon(profile_factory.coupon_request(clock(), code="DUP"))

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"code": "  "}, "code is required"),
            ({"discount_type": None}, "Discount type is required"),
            ({"discount_value": 0}, "greater than 0"),
            ({"discount_value": 120.0}, "cannot exceed 100"),
            ({"valid_until": None}, "dates are required"),
        ],
    )
    def test_invalid_requests(self, service, profile_factory, clock, overrides, message):
        with pytest.raises(ValidationError, match=message):
            service.create_coupon(profile_factory.coupon_request(clock(), **overrides))

    def test_window_must_be_ordered(self, service, profile_factory, clock):
        request = profile_factory.coupon_request(
            clock(), valid_from=clock(), valid_until=clock() - timedelta(hours=1)
        )
        with pytest.raises(ValidationError, match="before valid until"):
            service.create_coupon(request)

    def test_fixed_amount_above_100_allowed(self, service, profile_factory, clock):
        request = profile_factory.coupon_request(
            clock(), discount_type=DiscountType.FIXED_AMOUNT, discount_value=250.0
        )
        assert service.create_coupon(request).discount_value == 250.0


@pytest.mark.unit
class TestUpdateAndDelete:
    def test_update_keeps_code_and_usage(self, service, profile_factory, clock):
        store_coupon = service.create_coupon(profile_factory.coupon_request(clock(), code="SPRING"))
        service._store.increment_usage("SPRING", clock())
        clock.advance(minutes=5)

        updated = service.update_coupon(
            "SPRING", profile_factory.coupon_request(clock(), code="IGNORED", discount_value=20.0)
        )

        assert updated.code == "SPRING"
        assert updated.discount_value == 20.0
        assert updated.used_count == 1
        assert updated.created_at == store_coupon.created_at
        assert updated.updated_at == clock()
        assert service.get_coupon("SPRING").discount_value == 20.0

    def test_update_missing(self, service, profile_factory, clock):
        with pytest.raises(NotFoundError):
            service.update_coupon("NOPE", profile_factory.coupon_request(clock()))

    def test_update_validates(self, service, profile_factory, clock):
        service.create_coupon(profile_factory.coupon_request(clock(), code="SPRING"))
        with pytest.raises(ValidationError):
            service.update_coupon("SPRING", profile_factory.coupon_request(clock(), discount_value=-1))

    def test_delete(self, service, profile_factory, clock):
        service.create_coupon(profile_factory.coupon_request(clock(), code="GONE"))
        service.delete_coupon("GONE")

        with pytest.raises(NotFoundError):
            service.get_coupon("GONE")
        with pytest.raises(NotFoundError):
            service.delete_coupon("GONE")


@pytest.mark.unit
class TestListing:
    def test_active_and_valid(self, service, profile_factory, clock):
        now = clock()
        service.create_coupon(profile_factory.coupon_request(now, code="A-VALID"))
        service.create_coupon(profile_factory.coupon_request(now, code="B-OFF", active=False))
        service.create_coupon(
            profile_factory.coupon_request(
                now,
                code="C-FUTURE",
                valid_from=now + timedelta(days=1),
                valid_until=now + timedelta(days=2),
            )
        )

        assert [c.code for c in service.list_active_coupons()] == ["A-VALID", "C-FUTURE"]
        assert [c.code for c in service.list_valid_coupons()] == ["A-VALID"]


@pytest.mark.unit
class TestUpdateDuringSettlement:
    def test_redemption_between_read_and_write_is_kept(self, profile_factory, clock):
        store = RedeemOnReadStore()
        service = CouponService(store, clock=clock)
        fares = FareService(FareCalculator(), store, clock=clock)
        fare_request = FareRequest(
            distance_km=10.0, duration_minutes=20, base_rate_per_km=2.0, coupon_code="ONCE"
        )
        service.create_coupon(profile_factory.coupon_request(clock(), code="ONCE", usage_limit=1))

        settled = []
        store.after_read = lambda: settled.append(fares.settle_fare(fare_request))
        updated = service.update_coupon(
            "ONCE",
            profile_factory.coupon_request(clock(), code="ONCE", usage_limit=1, discount_value=15.0),
        )

        assert settled[0].applied_coupon_code == "ONCE"
        assert updated.used_count == 1
        assert updated.discount_value == 15.0
        assert fares.settle_fare(fare_request).applied_coupon_code is None
        assert store.find_by_code("ONCE").used_count == 1

    def test_update_of_coupon_deleted_meanwhile(self, profile_factory, clock):
        store = RedeemOnReadStore()
        service = CouponService(store, clock=clock)
        service.create_coupon(profile_factory.coupon_request(clock(), code="GONE"))

        store.after_read = lambda: store.delete("GONE")
        with pytest.raises(NotFoundError):
            service.update_coupon("GONE", profile_factory.coupon_request(clock(), code="GONE"))
        assert not store.exists_by_code("GONE")


@pytest.mark.slow
def test_concurrent_creates_keep_first_coupon(service, profile_factory, clock):
    requests = [
        profile_factory.coupon_request(clock(), code="RACE", discount_value=float(i + 1))
        for i in range(16)
    ]

    def create(coupon_request):
        try:
            return service.create_coupon(coupon_request)
        except ValidationError:
            return None

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(create, requests))

    created = [c for c in results if c is not None]
    assert len(created) == 1
    assert service.get_coupon("RACE").discount_value == created[0].discount_value
