"""
Nearby discovery: annotate already-fetched entities with their distance from
an observer, split off the ones without a usable coordinate, filter and sort.

No I/O happens here. Candidates may be mappings or objects exposing
``id``, ``latitude``, ``longitude`` and optionally ``status`` and
``created_at``; they are wrapped, never modified.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .geo import Coordinate, coordinate_from, distance_km, format_distance

MEASURED = 'measured'
DISTANCE_UNKNOWN = 'distance_unknown'
NO_LOCATION = 'no_location'

DISTANCE_UNKNOWN_DISPLAY = 'Location available'
NO_LOCATION_DISPLAY = 'No location'

ALL_STATUSES = 'all'


def _read(entity, name, default=None):
    if isinstance(entity, dict):
        return entity.get(name, default)
    return getattr(entity, name, default)


@dataclass(frozen=True)
class AnnotatedEntity:
    entity: Any
    coordinate: Optional[Coordinate]
    distance_km: Optional[float]
    distance_display: str
    location_state: str

    @property
    def has_location(self):
        return self.coordinate is not None


@dataclass
class DiscoveryResult:
    with_location: List[AnnotatedEntity] = field(default_factory=list)
    without_location: List[AnnotatedEntity] = field(default_factory=list)

    def __iter__(self):
        yield from self.with_location
        yield from self.without_location

    def __len__(self):
        return len(self.with_location) + len(self.without_location)


def annotate(observer: Optional[Coordinate], entity) -> AnnotatedEntity:
    coordinate = coordinate_from(_read(entity, 'latitude'), _read(entity, 'longitude'))
    if coordinate is None:
        return AnnotatedEntity(entity, None, None, NO_LOCATION_DISPLAY, NO_LOCATION)
    if observer is None:
        return AnnotatedEntity(entity, coordinate, None, DISTANCE_UNKNOWN_DISPLAY, DISTANCE_UNKNOWN)
    km = distance_km(observer.latitude, observer.longitude, coordinate.latitude, coordinate.longitude)
    return AnnotatedEntity(entity, coordinate, km, format_distance(km), MEASURED)


def _id_key(annotated):
    value = _read(annotated.entity, 'id')
    # Numeric ids sort numerically, anything else by its text
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, '')
    return (1, 0, '' if value is None else str(value))


def _created_key(annotated):
    created_at = _read(annotated.entity, 'created_at')
    return (created_at is not None, created_at)


def annotate_and_filter(observer, candidates, status_filter=None, max_distance_km=None) -> DiscoveryResult:
    """Annotate candidates relative to observer.

    Candidates without a valid coordinate (missing half, non-finite, or the
    (0, 0) sentinel) land in ``without_location`` in input order. Located
    candidates come newest first, ties broken by id. ``max_distance_km`` only
    drops measured candidates beyond the radius; without an observer it has
    no effect.
    """
    if observer is not None and not isinstance(observer, Coordinate):
        observer = coordinate_from(_read(observer, 'latitude'), _read(observer, 'longitude'))

    result = DiscoveryResult()
    for entity in candidates:
        if status_filter and status_filter != ALL_STATUSES and _read(entity, 'status') != status_filter:
            continue
        annotated = annotate(observer, entity)
        if not annotated.has_location:
            result.without_location.append(annotated)
            continue
        if (max_distance_km is not None and annotated.distance_km is not None
                and annotated.distance_km > max_distance_km):
            continue
        result.with_location.append(annotated)

    # Two stable passes: id ascending, then newest first
    result.with_location.sort(key=_id_key)
    result.with_location.sort(key=_created_key, reverse=True)
    return result


def nearest_first(result: DiscoveryResult) -> List[AnnotatedEntity]:
    """Located entities ordered by distance; unmeasured ones keep their order at the end"""
    measured = [a for a in result.with_location if a.distance_km is not None]
    unmeasured = [a for a in result.with_location if a.distance_km is None]
    return sorted(measured, key=lambda a: a.distance_km) + unmeasured


class NearbyFeed:
    """Latest candidates and observer; reads always reflect the newest of both"""

    def __init__(self, candidates=(), observer=None, status_filter=None, max_distance_km=None):
        self._candidates = list(candidates)
        self._observer = observer
        self._status_filter = status_filter
        self._max_distance_km = max_distance_km
        self._result = None

    def set_candidates(self, candidates):
        self._candidates = list(candidates)
        self._result = None

    def set_observer(self, observer):
        self._observer = observer
        self._result = None

    def set_status_filter(self, status_filter):
        self._status_filter = status_filter
        self._result = None

    @property
    def observer(self):
        return self._observer

    @property
    def result(self) -> DiscoveryResult:
        if self._result is None:
            self._result = annotate_and_filter(
                self._observer, self._candidates,
                status_filter=self._status_filter,
                max_distance_km=self._max_distance_km,
            )
        return self._result
