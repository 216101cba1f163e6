import os

# Settings are read from the environment; keep tests independent of the host.
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DB_URL", "sqlite:///:memory:")

from datetime import UTC, datetime, timedelta

import pytest

from ridecore.bootstrap import RideEngine, build_ride_engine
from ridecore.settings import Settings
from ridecore.stores import InMemoryProfileLookup, RecordingEventSink
from tests.factories import ProfileFactory

class FakeClock:
    """Deterministic, manually advanced wall clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0.0, **kwargs: float) -> datetime:
        self.now += timedelta(seconds=seconds, **kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def profile_factory() -> ProfileFactory:
    """Factory for creating profiles with seeded Faker."""
    return ProfileFactory(seed=42)


@pytest.fixture
def profiles() -> InMemoryProfileLookup:
    return InMemoryProfileLookup()


@pytest.fixture
def sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def engine(profiles, sink, clock, settings) -> RideEngine:
    """Fully wired engine on in-memory stores."""
    return build_ride_engine(profiles, settings=settings, sink=sink, clock=clock, in_memory=True)


@pytest.fixture
def temp_sqlite_url(tmp_path) -> str:
    """File-backed SQLite database for persistence tests."""
    return f"sqlite:///{tmp_path / 'test_rides.db'}"
