"""Great-circle distance, walking time and bounding boxes."""
from __future__ import annotations

from math import atan2, cos, floor, radians, sin, sqrt
from typing import Iterable, Tuple

from pin_map.core.errors import EmptyInputError
from pin_map.core.models import Coordinate

EARTH_RADIUS_KM = 6371.0
MINUTES_PER_KM = 15.0  # 4 km/h


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in kilometres between two WGS-84 points."""
    lat1r, lon1r, lat2r, lon2r = map(radians, [a.latitude, a.longitude, b.latitude, b.longitude])
    dlat = lat2r - lat1r
    dlon = lon2r - lon1r
    h = sin(dlat / 2) ** 2 + cos(lat1r) * cos(lat2r) * sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * atan2(sqrt(h), sqrt(1 - h))


def walking_minutes(distance: float, minutes_per_km: float = MINUTES_PER_KM) -> int:
    """Estimated walk in whole minutes. Halves round up (718.5 -> 719)."""
    return int(floor(distance * minutes_per_km + 0.5))


def bounds_of(coordinates: Iterable[Coordinate]) -> Tuple[Coordinate, Coordinate]:
    """Smallest (south_west, north_east) box containing every coordinate.

    Raises
    ------
    EmptyInputError
        If *coordinates* is empty. Callers are expected to guard.
    """
    pts = list(coordinates)
    if not pts:
        raise EmptyInputError("bounds_of() needs at least one coordinate")

    lats = [p.latitude for p in pts]
    lons = [p.longitude for p in pts]
    south_west = Coordinate(latitude=min(lats), longitude=min(lons))
    north_east = Coordinate(latitude=max(lats), longitude=max(lons))
    return south_west, north_east
