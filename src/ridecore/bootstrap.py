"""Wires the ride orchestration engine from settings."""

import logging
from dataclasses import dataclass

from ridecore.core.clock import Clock, utc_now
from ridecore.db import SqlCouponStore, SqlTripStore, init_database
from ridecore.fares import CouponService, FareCalculator, FareService
from ridecore.matching import CandidatePool, DriverRegistry, MatchingService, StrategySelector
from ridecore.ports import CouponStore, EventSink, ProfileLookup, TripStore
from ridecore.pubsub import RedisEventSink
from ridecore.ride_logging import setup_logging
from ridecore.settings import Settings, get_settings
from ridecore.stores import InMemoryCouponStore, InMemoryTripStore
from ridecore.tracking import LiveLocationFeed, LocationTracker
from ridecore.trips import TripEventPublisher, TripService

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> logging.Handler:
    return setup_logging(
        level=settings.logging.level,
        json_output=settings.logging.format == "json",
        environment=settings.logging.environment,
    )


@dataclass
class RideEngine:
    settings: Settings
    tracker: LocationTracker
    live_feed: LiveLocationFeed
    registry: DriverRegistry
    candidate_pool: CandidatePool
    matching: MatchingService
    trip_store: TripStore
    coupon_store: CouponStore
    trips: TripService
    fares: FareService
    coupons: CouponService


def build_ride_engine(
    profiles: ProfileLookup,
    settings: Settings | None = None,
    sink: EventSink | None = None,
    clock: Clock = utc_now,
    in_memory: bool = False,
) -> RideEngine:
    """Build every component of the engine around a profile directory.

    Stores are SQLAlchemy-backed on ``settings.database.url`` unless
    ``in_memory`` is set. Without an explicit sink, events go to Redis when
    enabled in settings and are dropped otherwise.
    """
    settings = settings or get_settings()

    trip_store: TripStore
    coupon_store: CouponStore
    if in_memory:
        trip_store = InMemoryTripStore()
        coupon_store = InMemoryCouponStore()
    else:
        session_factory = init_database(settings.database.url, echo=settings.database.echo)
        trip_store = SqlTripStore(session_factory)
        coupon_store = SqlCouponStore(session_factory)

    if sink is None and settings.redis.enabled:
        sink = RedisEventSink(settings.redis)

    tracker = LocationTracker(settings.tracking, clock=clock)
    registry = DriverRegistry()
    pool = CandidatePool(profiles, registry, tracker, settings.matching)
    selector = StrategySelector(settings.matching)
    calculator = FareCalculator(priority=settings.fare.strategy_priority)

    trips = TripService(
        store=trip_store,
        profiles=profiles,
        pool=pool,
        registry=registry,
        selector=selector,
        settlement=settings.settlement,
        events=TripEventPublisher(sink),
        clock=clock,
    )

    logger.info(
        "Ride engine ready (stores=%s, events=%s, fare priority=%s)",
        "memory" if in_memory else "sql",
        type(sink).__name__ if sink is not None else "none",
        ",".join(calculator.priority),
    )
    return RideEngine(
        settings=settings,
        tracker=tracker,
        live_feed=LiveLocationFeed(tracker, sink),
        registry=registry,
        candidate_pool=pool,
        matching=MatchingService(profiles, pool, selector),
        trip_store=trip_store,
        coupon_store=coupon_store,
        trips=trips,
        fares=FareService(calculator, coupon_store, clock=clock),
        coupons=CouponService(coupon_store, clock=clock),
    )
