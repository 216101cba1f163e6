import logging

from ridecore.core.exceptions import NotFoundError
from ridecore.geo import GeoPoint, distance_km
from ridecore.ports import ProfileLookup
from ridecore.settings import MatchingSettings
from ridecore.tracking import LocationTracker

from .driver_registry import DriverRegistry
from .models import DriverCandidate

logger = logging.getLogger(__name__)


class CandidatePool:
    """Builds the list of drivers a trip request may be matched against.

    Drivers come from the profile store's available drivers, drivers the
    registry marks available, and any driver the tracker currently sees near
    the pickup. Live state wins over profile
    state: the tracker's latest point replaces the profile location and the
    registry's availability and ride count replace the profile's.
    """

    def __init__(
        self,
        profiles: ProfileLookup,
        registry: DriverRegistry,
        tracker: LocationTracker | None = None,
        settings: MatchingSettings | None = None,
    ) -> None:
        self._profiles = profiles
        self._registry = registry
        self._tracker = tracker
        self._settings = settings or MatchingSettings()

    def find_nearby(
        self, center: GeoPoint, radius_km: float | None = None
    ) -> list[DriverCandidate]:
        """Available drivers within the radius, nearest first."""
        radius = self._settings.search_radius_km if radius_km is None else radius_km
        if not center.is_complete:
            return []

        ranked: list[tuple[float, DriverCandidate]] = []
        for candidate in self._collect(center, radius):
            candidate = self._resolve(candidate)
            if not candidate.available or not candidate.has_location:
                continue
            distance = distance_km(center, candidate.point)
            if distance <= radius:
                ranked.append((distance, candidate))

        ranked.sort(key=lambda item: item[0])
        return [candidate for _, candidate in ranked]

    def find_available(self) -> list[DriverCandidate]:
        """Every available driver, located or not, in profile order."""
        resolved = (self._resolve(c) for c in self._collect(None, 0.0))
        return [c for c in resolved if c.available]

    def _collect(self, center: GeoPoint | None, radius: float) -> list[DriverCandidate]:
        by_id: dict[str, DriverCandidate] = {}
        for candidate in self._profiles.find_available_drivers():
            by_id.setdefault(candidate.driver_id, candidate)

        extra_ids = [r.driver_id for r in self._registry.records() if r.available]
        if self._tracker is not None and center is not None:
            extra_ids.extend(
                s.driver_id for s in self._tracker.nearby(center, radius) if s.driver_id
            )
        for driver_id in extra_ids:
            if driver_id in by_id:
                continue
            try:
                by_id[driver_id] = self._profiles.find_driver_profile(driver_id)
            except NotFoundError:
                logger.debug("Driver %s has no profile, skipping", driver_id)
        return list(by_id.values())

    def _resolve(self, candidate: DriverCandidate) -> DriverCandidate:
        if self._tracker is not None:
            latest = self._tracker.latest(candidate.driver_id)
            if latest is not None and latest.point.is_complete:
                candidate = candidate.model_copy(update={"point": latest.point})
        return self._registry.overlay(candidate)
