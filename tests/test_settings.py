import pytest
from pydantic import ValidationError

from ridecore.settings import FareSettings, MatchingSettings, Settings, TrackingSettings


@pytest.mark.unit
class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.tracking.history_capacity == 100
        assert settings.tracking.min_update_interval_seconds == 2.0
        assert settings.tracking.min_displacement_m == 10.0
        assert settings.tracking.active_window_seconds == 300
        assert settings.matching.default_strategy == "nearest"
        assert settings.fare.strategy_priority == ("WEATHER_BASED", "NIGHTTIME", "DAYTIME")
        assert settings.settlement.base_fare == 50.0
        assert settings.settlement.per_km_rate == 15.0
        assert settings.redis.enabled is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TRACKING_HISTORY_CAPACITY", "25")
        monkeypatch.setenv("MATCHING_DEFAULT_STRATEGY", "LEAST-BUSY")

        assert TrackingSettings().history_capacity == 25
        assert MatchingSettings().default_strategy == "least-busy"

    def test_fare_priority_normalized(self):
        settings = FareSettings(strategy_priority=("nighttime", "daytime"))
        assert settings.strategy_priority == ("NIGHTTIME", "DAYTIME")

    @pytest.mark.parametrize(
        "priority",
        [("SURGE",), ("DAYTIME", "DAYTIME"), ()],
    )
    def test_fare_priority_rejected(self, priority):
        with pytest.raises(ValidationError):
            FareSettings(strategy_priority=priority)

    def test_tracking_bounds(self):
        with pytest.raises(ValidationError):
            TrackingSettings(history_capacity=0)
        with pytest.raises(ValidationError):
            TrackingSettings(h3_resolution=16)
