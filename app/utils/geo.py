"""Geospatial helpers shared by the nearby search and its tests."""

from __future__ import annotations

import math
from urllib.parse import urlencode

LatLng = tuple[float, float]

EARTH_RADIUS_KM = 6371.0

_DIRECTIONS_URL = "https://www.google.com/maps/dir/"


def haversine_distance_km(
    point_a: LatLng, point_b: LatLng, *, radius_km: float = EARTH_RADIUS_KM
) -> float:
    """Great-circle distance between two ``(lat, lng)`` points in kilometres.

    The intermediate value is clamped to [0, 1] so rounding near the poles or
    across the antimeridian never feeds ``asin`` an out-of-domain argument.
    """

    lat1, lng1 = point_a
    lat2, lng2 = point_b

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lng2 - lng1)

    a = math.sin(dphi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    a = min(1.0, max(0.0, a))
    return radius_km * 2.0 * math.asin(math.sqrt(a))


def format_distance_km(distance_km: float) -> str:
    return f"{distance_km:.1f} km"


def directions_url(latitude: float, longitude: float) -> str:
    """Driving directions link to a point, as opened from the result list."""

    query = urlencode(
        {
            "api": "1",
            "destination": f"{latitude},{longitude}",
            "travelmode": "driving",
        }
    )
    return f"{_DIRECTIONS_URL}?{query}"


__all__ = [
    "EARTH_RADIUS_KM",
    "LatLng",
    "directions_url",
    "format_distance_km",
    "haversine_distance_km",
]
