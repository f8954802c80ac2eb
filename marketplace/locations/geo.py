"""
Great-circle distance between coordinates and its display formatting.

Pure functions, no Django imports: models and the discovery layer both
build on this module.
"""
import math
from decimal import Decimal
from numbers import Real
from typing import NamedTuple, Optional

EARTH_RADIUS_KM = 6371.0

# Records that were never located carry (0, 0). That collides with a real
# point in the Gulf of Guinea; new data should leave the fields null instead.
ORIGIN_IS_UNSET = True


class Coordinate(NamedTuple):
    latitude: float
    longitude: float


def _as_finite(value, name):
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return number


def distance_km(lat1, lon1, lat2, lon2) -> float:
    """Haversine distance in kilometers between two points in decimal degrees.

    Ranges are not checked; callers validate coordinates before asking.
    """
    lat1 = _as_finite(lat1, 'lat1')
    lon1 = _as_finite(lon1, 'lon1')
    lat2 = _as_finite(lat2, 'lat2')
    lon2 = _as_finite(lon2, 'lon2')

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    # Rounding can push a a hair outside [0, 1] for antipodal or identical points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def format_distance(km) -> str:
    """'500m' below one kilometer, '12.3km' from there on"""
    km = float(km)
    if km < 1:
        return f"{math.floor(km * 1000 + 0.5)}m"
    return f"{km:.1f}km"


def is_valid_coordinate(latitude, longitude) -> bool:
    """True for a complete, finite, in-range pair that is not the unset sentinel"""
    try:
        lat = _as_finite(latitude, 'latitude')
        lon = _as_finite(longitude, 'longitude')
    except ValueError:
        return False
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return False
    if ORIGIN_IS_UNSET and lat == 0.0 and lon == 0.0:
        return False
    return True


def coordinate_from(latitude, longitude) -> Optional[Coordinate]:
    """Coordinate for a valid pair, None when either half is missing or bad"""
    if not is_valid_coordinate(latitude, longitude):
        return None
    return Coordinate(float(latitude), float(longitude))
