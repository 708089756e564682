"""Great-circle distance and city-name coordinate estimation.

Listings carry free-text locations rather than coordinates, so their position
is estimated by matching a small table of known cities against the text.
"""

from __future__ import annotations

import math
from typing import NamedTuple

# Mean Earth radius in statute miles.
EARTH_RADIUS_MILES = 3959


class CityCoordinate(NamedTuple):
    name: str
    lat: float
    lng: float


# Scanned in order; the first city contained in the location text wins.
CITY_COORDINATES: tuple[CityCoordinate, ...] = (
    CityCoordinate("houston", 29.7604, -95.3698),
    CityCoordinate("dallas", 32.7767, -96.7970),
    CityCoordinate("austin", 30.2672, -97.7431),
)


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in miles between two points given in degrees.

    Examples:
        >>> haversine_miles(29.7604, -95.3698, 29.7604, -95.3698)
        0.0
        >>> 224 <= haversine_miles(29.7604, -95.3698, 32.7767, -96.7970) <= 226
        True
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) * math.sin(d_lat / 2)
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lng / 2)
        * math.sin(d_lng / 2)
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def resolve_city(
    location: str | None,
    table: tuple[CityCoordinate, ...] = CITY_COORDINATES,
) -> tuple[float, float] | None:
    """Estimate coordinates for free-text location by city-name containment.

    Args:
        location: Free text such as "Houston, TX" or "near downtown Dallas".
        table: Ordered city table to scan.

    Returns:
        (lat, lng) of the first city contained case-insensitively, or None.
    """
    if not location:
        return None
    haystack = location.lower()
    for city in table:
        if city.name in haystack:
            return city.lat, city.lng
    return None


def is_valid_center(lat: float | None, lng: float | None) -> bool:
    """Whether a search center is usable.

    A zero component is indistinguishable from "not sent" in the query
    string, so it is rejected even though (0, y) is a real place. Non-finite
    and out-of-range degrees are rejected as well.
    """
    if lat is None or lng is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    if abs(lat) > 90 or abs(lng) > 180:
        return False
    return lat != 0 and lng != 0
