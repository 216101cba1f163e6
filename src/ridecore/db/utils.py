from datetime import UTC, datetime

from ridecore.core.clock import as_utc


def utc_now() -> datetime:
    """Naive UTC timestamp as stored in the database."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_db_time(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)


def from_db_time(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=UTC)
