from .memory import (
    InMemoryCouponStore,
    InMemoryProfileLookup,
    InMemoryTripStore,
    RecordingEventSink,
)

__all__ = [
    "InMemoryCouponStore",
    "InMemoryProfileLookup",
    "InMemoryTripStore",
    "RecordingEventSink",
]
