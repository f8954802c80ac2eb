"""
Location resolution: one authoritative {latitude, longitude, permissionStatus}
view reconciled from a persisted record, the profile coordinate and a fresh
device read.

Storage and the device are injected ports so nothing here depends on a
global. ``CacheLocationStore`` keeps the record in the Django cache (Redis in
production); tests use ``InMemoryLocationStore``.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.cache import cache

from marketplace.core.exceptions import UpstreamUnavailable
from .geo import Coordinate, coordinate_from

logger = logging.getLogger('marketplace.locations')

PROMPT = 'prompt'
GRANTED = 'granted'
DENIED = 'denied'
UNSUPPORTED = 'unsupported'
PERMISSION_STATES = (PROMPT, GRANTED, DENIED, UNSUPPORTED)

LOCATION_STORAGE_KEY = 'user-location'

SOURCE_CACHE = 'cache'
SOURCE_PROFILE = 'profile'
SOURCE_DEVICE = 'device'


@dataclass(frozen=True)
class LocationRecord:
    latitude: Optional[float]
    longitude: Optional[float]
    permission_status: str = PROMPT

    @property
    def coordinate(self) -> Optional[Coordinate]:
        return coordinate_from(self.latitude, self.longitude)

    def to_dict(self):
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'permissionStatus': self.permission_status,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            latitude=data.get('latitude'),
            longitude=data.get('longitude'),
            permission_status=data.get('permissionStatus', PROMPT),
        )


@dataclass(frozen=True)
class LocationResult:
    """Outcome of a one-shot device read; reason is set only on failure"""
    coordinate: Optional[Coordinate]
    permission_status: str
    reason: Optional[str] = None

    @property
    def ok(self):
        return self.coordinate is not None


@dataclass(frozen=True)
class ResolvedLocation:
    coordinate: Optional[Coordinate]
    permission_status: str
    source: Optional[str]
    reason: Optional[str] = None

    def to_dict(self):
        return {
            'latitude': self.coordinate.latitude if self.coordinate else None,
            'longitude': self.coordinate.longitude if self.coordinate else None,
            'permissionStatus': self.permission_status,
            'source': self.source,
            'reason': self.reason,
        }


# ==================== STORAGE PORT ====================

class LocationStore:
    """Persisted location record: get / set / clear"""

    def get(self) -> Optional[LocationRecord]:
        raise NotImplementedError

    def set(self, record: LocationRecord) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class InMemoryLocationStore(LocationStore):
    def __init__(self, record=None):
        self._record = record

    def get(self):
        return self._record

    def set(self, record):
        self._record = record

    def clear(self):
        self._record = None


class CacheLocationStore(LocationStore):
    """One record per user in the Django cache under 'user-location:<id>'"""

    def __init__(self, user_id, ttl=None):
        self.key = f"{LOCATION_STORAGE_KEY}:{user_id}"
        self.ttl = ttl if ttl is not None else getattr(settings, 'LOCATION_CACHE_TTL', None)

    def get(self):
        data = cache.get(self.key)
        if not data:
            return None
        try:
            return LocationRecord.from_dict(data)
        except AttributeError:
            logger.warning(f"Discarding malformed cached location under {self.key}")
            return None

    def set(self, record):
        cache.set(self.key, record.to_dict(), self.ttl)

    def clear(self):
        cache.delete(self.key)


# ==================== DEVICE PORT ====================

class GeolocationProvider:
    """Platform geolocation capability"""

    def is_supported(self) -> bool:
        raise NotImplementedError

    def query_permission(self) -> Optional[str]:
        """Current permission state, or None when introspection is unavailable"""
        raise NotImplementedError

    def get_current_position(self) -> Coordinate:
        """One-shot read; raises UpstreamUnavailable with a reason code on failure"""
        raise NotImplementedError


class SubmittedPositionProvider(GeolocationProvider):
    """Device result reported by the client in a request.

    ``payload`` is the request body or query string: either a
    ``latitude``/``longitude`` pair or an ``error`` reason code, optionally
    with the browser's ``permissionStatus``. ``supported: false`` marks a
    device without the capability.
    """

    def __init__(self, payload, latitude_key='latitude', longitude_key='longitude'):
        self.payload = payload or {}
        self.latitude_key = latitude_key
        self.longitude_key = longitude_key

    def is_supported(self):
        supported = self.payload.get('supported', True)
        if isinstance(supported, str):
            return supported.strip().lower() not in ('false', '0', 'no')
        return bool(supported)

    def query_permission(self):
        permission = self.payload.get('permissionStatus')
        if permission not in PERMISSION_STATES:
            return None
        return permission

    def has_report(self):
        return bool(self.payload.get('error')) or (
            self.payload.get(self.latitude_key) not in (None, '')
            and self.payload.get(self.longitude_key) not in (None, '')
        )

    def get_current_position(self):
        error = self.payload.get('error')
        if error:
            raise UpstreamUnavailable(error)
        try:
            latitude = float(self.payload.get(self.latitude_key))
            longitude = float(self.payload.get(self.longitude_key))
        except (TypeError, ValueError):
            raise UpstreamUnavailable(UpstreamUnavailable.UNAVAILABLE)
        coordinate = coordinate_from(latitude, longitude)
        if coordinate is None:
            raise UpstreamUnavailable(UpstreamUnavailable.UNAVAILABLE)
        return coordinate


# ==================== SERVICE ====================

class LocationResolutionService:
    """Reconciles stored, profile and device coordinates for one session.

    Precedence, stated once in ``resolve``: cached storage, then the profile
    coordinate, then a fresh device read.
    """

    def __init__(self, store: LocationStore, provider: GeolocationProvider,
                 profile: Optional[Coordinate] = None, profile_permission: Optional[str] = None):
        self.store = store
        self.provider = provider
        self.profile = profile
        self.permission_status = profile_permission if profile_permission in PERMISSION_STATES else PROMPT

    def get_saved_location(self) -> Optional[LocationRecord]:
        return self.store.get()

    def get_current_permission(self) -> str:
        """Live permission state; falls back to the recorded state when the device reports none"""
        # unsupported sticks once recorded
        if self.permission_status == UNSUPPORTED or not self.provider.is_supported():
            self.permission_status = UNSUPPORTED
            return UNSUPPORTED
        try:
            permission = self.provider.query_permission()
        except Exception as e:
            logger.warning(f"Permission introspection failed, assuming prompt: {e}")
            return PROMPT
        if permission is None:
            return self.permission_status
        if permission not in PERMISSION_STATES:
            return PROMPT
        return permission

    def request_location(self) -> LocationResult:
        if not self.provider.is_supported():
            self.permission_status = UNSUPPORTED
            return LocationResult(None, UNSUPPORTED, UpstreamUnavailable.UNAVAILABLE)
        try:
            coordinate = self.provider.get_current_position()
        except UpstreamUnavailable as e:
            self.permission_status = DENIED
            logger.info(f"Device location unavailable ({e.reason})")
            return LocationResult(None, DENIED, e.reason)
        self.permission_status = GRANTED
        return LocationResult(coordinate, GRANTED)

    def save_location(self, coordinate: Coordinate, permission_status: str = GRANTED) -> LocationRecord:
        record = LocationRecord(coordinate.latitude, coordinate.longitude, permission_status)
        self.store.set(record)
        return record

    def clear_location(self) -> None:
        self.store.clear()

    def resolve(self, allow_device=True) -> ResolvedLocation:
        saved = self.get_saved_location()
        if saved is not None and saved.coordinate is not None:
            return ResolvedLocation(saved.coordinate, saved.permission_status, SOURCE_CACHE)

        if self.profile is not None:
            return ResolvedLocation(self.profile, self.permission_status, SOURCE_PROFILE)

        if not allow_device:
            return ResolvedLocation(None, self.permission_status, None)

        result = self.request_location()
        if result.ok:
            return ResolvedLocation(result.coordinate, result.permission_status, SOURCE_DEVICE)
        return ResolvedLocation(None, result.permission_status, None, result.reason)


def service_for_user(user, payload=None):
    """Resolution service wired to the user's cache record and profile coordinate"""
    return LocationResolutionService(
        store=CacheLocationStore(user.pk),
        provider=SubmittedPositionProvider(payload),
        profile=user.coordinate,
        profile_permission=user.location_permission,
    )
