from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MATCHING_STRATEGY_KEYS = ("nearest", "least-busy", "high-rating")
FARE_STRATEGY_TYPES = ("WEATHER_BASED", "NIGHTTIME", "DAYTIME")


class TrackingSettings(BaseSettings):
    """Live location tracking thresholds."""

    history_capacity: int = Field(
        default=100,
        ge=1,
        le=10_000,
        description="Samples kept per driver before the oldest is evicted",
    )
    min_update_interval_seconds: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Wall-clock seconds required between accepted samples for one driver",
    )
    min_displacement_m: float = Field(
        default=10.0,
        ge=0.0,
        le=1000.0,
        description="Movement in meters required to accept a new sample",
    )
    active_window_seconds: int = Field(
        default=300,
        ge=1,
        description="A driver is active if a sample was accepted within this window",
    )
    h3_resolution: int = Field(
        default=7,
        ge=0,
        le=15,
        description="H3 resolution of the proximity index used by nearby queries",
    )

    model_config = SettingsConfigDict(env_prefix="TRACKING_")


class MatchingSettings(BaseSettings):
    """Driver candidate search and strategy selection."""

    search_radius_km: float = Field(default=10.0, gt=0.0, le=200.0)
    default_strategy: str = Field(default="nearest")

    model_config = SettingsConfigDict(env_prefix="MATCHING_")

    @field_validator("default_strategy")
    @classmethod
    def validate_strategy(cls, v: str) -> str:
        key = v.lower()
        if key not in MATCHING_STRATEGY_KEYS:
            raise ValueError(
                f"Unknown matching strategy '{v}'. Expected one of {MATCHING_STRATEGY_KEYS}"
            )
        return key


class FareSettings(BaseSettings):
    """Fare strategy selection order (first applicable wins)."""

    strategy_priority: tuple[str, ...] = FARE_STRATEGY_TYPES

    model_config = SettingsConfigDict(env_prefix="FARE_")

    @field_validator("strategy_priority")
    @classmethod
    def validate_priority(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        normalized = tuple(s.upper() for s in v)
        unknown = [s for s in normalized if s not in FARE_STRATEGY_TYPES]
        if unknown:
            raise ValueError(f"Unknown fare strategies in priority: {', '.join(unknown)}")
        if len(set(normalized)) != len(normalized):
            raise ValueError("Fare strategy priority must not contain duplicates")
        if not normalized:
            raise ValueError("Fare strategy priority must not be empty")
        return normalized


class SettlementSettings(BaseSettings):
    """Flat settlement formula applied when a trip completes."""

    base_fare: float = Field(default=50.0, ge=0.0)
    per_km_rate: float = Field(default=15.0, ge=0.0)
    minutes_per_km: float = Field(
        default=2.0,
        gt=0.0,
        description="Rough duration estimate recorded on trip creation",
    )

    model_config = SettingsConfigDict(env_prefix="SETTLEMENT_")


class LoggingSettings(BaseSettings):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["text", "json"] = "text"
    environment: str = "development"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class DatabaseSettings(BaseSettings):
    url: str = "sqlite:///:memory:"
    echo: bool = False

    model_config = SettingsConfigDict(env_prefix="DB_")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if "://" not in v:
            raise ValueError("Database URL must include a scheme, e.g. sqlite:///rides.db")
        return v


class RedisSettings(BaseSettings):
    enabled: bool = False
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str = ""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    @model_validator(mode="after")
    def validate_credentials_provided(self) -> "RedisSettings":
        if self.enabled and not self.password:
            raise ValueError("Required credential not provided: REDIS_PASSWORD")
        return self


class Settings(BaseSettings):
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    fare: FareSettings = Field(default_factory=FareSettings)
    settlement: SettlementSettings = Field(default_factory=SettlementSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
