"""Prometheus counters for the ride orchestration engine.

Exported in Prometheus text format by :func:`export_metrics`.
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest

# Use a separate registry to avoid default Python metrics
REGISTRY = CollectorRegistry()

location_samples = Counter(
    "ridecore_location_samples_total",
    "Driver location samples offered to the tracker, by outcome",
    ["outcome"],
    registry=REGISTRY,
)

trip_transitions = Counter(
    "ridecore_trip_transitions_total",
    "Trip lifecycle transitions persisted, by resulting state",
    ["state"],
    registry=REGISTRY,
)

fare_quotes = Counter(
    "ridecore_fare_quotes_total",
    "Fares calculated, by strategy used",
    ["strategy"],
    registry=REGISTRY,
)

coupon_redemptions = Counter(
    "ridecore_coupon_redemptions_total",
    "Coupon settlement attempts, by outcome",
    ["outcome"],
    registry=REGISTRY,
)

event_publish_failures = Counter(
    "ridecore_event_publish_failures_total",
    "Events the sink failed to publish, by topic kind",
    ["topic_kind"],
    registry=REGISTRY,
)


def sample_value(name: str, labels: dict[str, str] | None = None) -> float:
    """Current value of a counter sample (0.0 if never incremented)."""
    value = REGISTRY.get_sample_value(name, labels or {})
    return value if value is not None else 0.0


def export_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)
