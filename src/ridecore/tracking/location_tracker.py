import logging
import math
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta

import h3

from ridecore.core.clock import Clock, as_utc, utc_now
from ridecore.core.locks import StripedLock
from ridecore.geo import GeoPoint, distance_km, distance_m
from ridecore.metrics import location_samples
from ridecore.settings import TrackingSettings

from .samples import LocationSample

logger = logging.getLogger(__name__)

# Beyond this many rings a linear scan over latest samples is cheaper than
# expanding the H3 disk.
MAX_INDEX_RINGS = 60


@dataclass
class _DriverTrack:
    latest: LocationSample
    last_accepted_at: datetime
    history: deque[LocationSample]
    cell: str | None = None


class LocationTracker:
    """In-memory live location state for drivers.

    Keeps the latest accepted sample and a bounded history per driver, plus an
    H3 cell index over latest points for proximity queries.

    Thread-safe: read-check-write for one driver runs under that driver's
    stripe; the index lock only guards dict structure and snapshots.
    """

    def __init__(
        self,
        settings: TrackingSettings | None = None,
        clock: Clock = utc_now,
        stripes: int = 64,
    ) -> None:
        self._settings = settings or TrackingSettings()
        self._clock = clock
        self._driver_locks = StripedLock(stripes)
        self._index_lock = threading.Lock()
        self._tracks: dict[str, _DriverTrack] = {}
        self._h3_cells: dict[str, set[str]] = {}

    @property
    def settings(self) -> TrackingSettings:
        return self._settings

    def ingest(self, sample: LocationSample) -> bool:
        """Offer a sample; return True if it was accepted."""
        driver_id = sample.driver_id
        if not driver_id:
            location_samples.labels(outcome="missing_driver").inc()
            return False

        with self._driver_locks.hold(driver_id):
            now = self._clock()
            with self._index_lock:
                track = self._tracks.get(driver_id)

            if track is not None:
                rejection = self._rejection_reason(track, sample, now)
                if rejection is not None:
                    location_samples.labels(outcome=rejection).inc()
                    logger.debug(
                        "Rejected location sample for driver %s: %s", driver_id, rejection
                    )
                    return False

            self._accept(driver_id, track, sample, now)

        location_samples.labels(outcome="accepted").inc()
        return True

    def _rejection_reason(
        self, track: _DriverTrack, sample: LocationSample, now: datetime
    ) -> str | None:
        elapsed = (as_utc(now) - as_utc(track.last_accepted_at)).total_seconds()
        if elapsed < self._settings.min_update_interval_seconds:
            return "throttled"

        if as_utc(sample.timestamp) < as_utc(track.latest.timestamp):
            return "out_of_order"

        previous = track.latest.point
        if previous.is_complete and sample.point.is_complete:
            if distance_m(previous, sample.point) < self._settings.min_displacement_m:
                return "jitter"
        return None

    def _accept(
        self,
        driver_id: str,
        track: _DriverTrack | None,
        sample: LocationSample,
        now: datetime,
    ) -> None:
        new_cell = self._cell_for(sample.point)
        with self._index_lock:
            # The driver may have been removed or cleared since the track was read.
            if track is None or self._tracks.get(driver_id) is not track:
                track = _DriverTrack(
                    latest=sample,
                    last_accepted_at=now,
                    history=deque(maxlen=self._settings.history_capacity),
                )
                self._tracks[driver_id] = track
            track.history.append(sample)
            track.latest = sample
            track.last_accepted_at = now

            if track.cell != new_cell:
                self._unindex(driver_id, track.cell)
                if new_cell is not None:
                    self._h3_cells.setdefault(new_cell, set()).add(driver_id)
                track.cell = new_cell

    def _unindex(self, driver_id: str, cell: str | None) -> None:
        if cell is None or cell not in self._h3_cells:
            return
        self._h3_cells[cell].discard(driver_id)
        if not self._h3_cells[cell]:
            del self._h3_cells[cell]

    def _cell_for(self, point: GeoPoint) -> str | None:
        if not point.is_complete:
            return None
        lat, lon = point.as_tuple()
        return h3.latlng_to_cell(lat, lon, self._settings.h3_resolution)

    def latest(self, driver_id: str) -> LocationSample | None:
        with self._index_lock:
            track = self._tracks.get(driver_id)
            return track.latest if track else None

    def history(self, driver_id: str, limit: int = 100) -> list[LocationSample]:
        """Accepted samples for a driver, oldest first, at most ``limit``."""
        if limit <= 0:
            return []
        with self._index_lock:
            track = self._tracks.get(driver_id)
            if track is None:
                return []
            samples = list(track.history)
        return samples[-limit:]

    def nearby(self, center: GeoPoint, radius_km: float) -> list[LocationSample]:
        """Latest samples with complete points within ``radius_km`` of center."""
        if not center.is_complete or radius_km < 0:
            return []

        k = self._rings_for(radius_km)
        with self._index_lock:
            if k is None:
                candidates = [t.latest for t in self._tracks.values()]
            else:
                center_cell = self._cell_for(center)
                candidates = []
                for cell in h3.grid_disk(center_cell, k):
                    for driver_id in self._h3_cells.get(cell, ()):
                        track = self._tracks.get(driver_id)
                        if track is not None:
                            candidates.append(track.latest)

        return [
            sample
            for sample in candidates
            if sample.point.is_complete and distance_km(center, sample.point) <= radius_km
        ]

    def _rings_for(self, radius_km: float) -> int | None:
        # Adjacent cell centers are at least ~1.5 edge lengths apart in the
        # worst direction; dividing by one edge length over-covers the radius.
        edge_km = h3.average_hexagon_edge_length(self._settings.h3_resolution, unit="km")
        k = math.ceil(radius_km / edge_km) + 1
        if k > MAX_INDEX_RINGS:
            return None
        return k

    def active_drivers(self, window: timedelta | None = None) -> set[str]:
        """Drivers with a sample accepted within ``window`` (default from settings)."""
        if window is None:
            window = timedelta(seconds=self._settings.active_window_seconds)
        cutoff = as_utc(self._clock()) - window
        with self._index_lock:
            return {
                driver_id
                for driver_id, track in self._tracks.items()
                if as_utc(track.last_accepted_at) >= cutoff
            }

    def remove_driver(self, driver_id: str) -> None:
        """Forget all location state for a driver going offline."""
        with self._driver_locks.hold(driver_id):
            with self._index_lock:
                track = self._tracks.pop(driver_id, None)
                if track is not None:
                    self._unindex(driver_id, track.cell)
        if track is not None:
            logger.info("Removed location state for driver %s", driver_id)

    def stats(self) -> dict[str, int]:
        active = len(self.active_drivers())
        with self._index_lock:
            total = len(self._tracks)
        return {"activeDrivers": active, "totalDrivers": total}

    def clear(self) -> None:
        with self._index_lock:
            self._tracks.clear()
            self._h3_cells.clear()
