"""Live driver location tracking."""

from .live_feed import LiveLocationFeed
from .location_tracker import LocationTracker
from .samples import LocationSample

__all__ = ["LiveLocationFeed", "LocationSample", "LocationTracker"]
