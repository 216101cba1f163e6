"""Test factories for generating profile and coupon data with deterministic Faker."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from faker import Faker

from ridecore.fares.coupons import CouponRequest, DiscountType
from ridecore.geo import GeoPoint
from ridecore.matching.models import DriverCandidate, RiderContext
from ridecore.stores import InMemoryProfileLookup

# New Delhi landmarks used across tests.
CONNAUGHT_PLACE = (28.6315, 77.2167)
INDIA_GATE = (28.6129, 77.2295)
KAROL_BAGH = (28.6519, 77.1909)
NOIDA = (28.5355, 77.3910)


class ProfileFactory:
    """Factory for driver and rider profiles with deterministic Faker data."""

    DEFAULT_SEED = 42

    def __init__(self, seed: int = DEFAULT_SEED):
        self.seed = seed
        self.fake = Faker()
        self.fake.seed_instance(seed)

    def driver(
        self, location: tuple[float, float] | None = None, **overrides: Any
    ) -> DriverCandidate:
        defaults: dict[str, Any] = {
            "driver_id": f"driver-{self.fake.uuid4()}",
            "point": GeoPoint(latitude=location[0], longitude=location[1]) if location else None,
            "rating": round(self.fake.pyfloat(min_value=3.5, max_value=5.0), 2),
            "active_ride_count": 0,
            "available": True,
        }
        defaults.update(overrides)
        return DriverCandidate(**defaults)

    def rider(self, location: tuple[float, float] | None = None, **overrides: Any) -> RiderContext:
        defaults: dict[str, Any] = {
            "rider_id": f"rider-{self.fake.uuid4()}",
            "point": GeoPoint(latitude=location[0], longitude=location[1]) if location else None,
        }
        defaults.update(overrides)
        return RiderContext(**defaults)

    def add_driver(
        self,
        profiles: InMemoryProfileLookup,
        location: tuple[float, float] | None = None,
        **overrides: Any,
    ) -> DriverCandidate:
        driver = self.driver(location, **overrides)
        profiles.add_driver(driver, name=self.fake.name())
        return driver

    def add_rider(
        self,
        profiles: InMemoryProfileLookup,
        location: tuple[float, float] | None = None,
        **overrides: Any,
    ) -> RiderContext:
        rider = self.rider(location, **overrides)
        profiles.add_rider(rider, name=self.fake.name())
        return rider

    def coupon_request(self, now: datetime | None = None, **overrides: Any) -> CouponRequest:
        now = now or datetime.now(UTC)
        defaults: dict[str, Any] = {
            "code": self.fake.bothify("RIDE-####").upper(),
            "description": self.fake.sentence(nb_words=4),
            "discount_type": DiscountType.PERCENTAGE,
            "discount_value": 10.0,
            "valid_from": now - timedelta(days=1),
            "valid_until": now + timedelta(days=30),
        }
        defaults.update(overrides)
        return CouponRequest(**defaults)


def point(location: tuple[float, float]) -> GeoPoint:
    return GeoPoint(latitude=location[0], longitude=location[1])
