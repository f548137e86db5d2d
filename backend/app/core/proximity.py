"""Proximity — great-circle distance and the radius gate.

Invariants:
    - haversine_km is the only distance function in the codebase
    - is_within_radius is inclusive: distance == radius counts as in range
    - Pure and total for finite inputs; no failure mode

Design Decisions:
    - Mean Earth radius 6371 km (spherical model): error well under the radius granularity
"""

import math

from app.core.domain_types import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between a and b in kilometers."""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_within_radius(a: Coordinate, b: Coordinate, radius_km: float) -> bool:
    return haversine_km(a, b) <= radius_km
