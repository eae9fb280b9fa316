from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..recommendations.models import ParkingSpaceSnapshot, UserLocation

EARTH_RADIUS_KM = 6371.0


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Haversine distance in kilometres between two points in decimal degrees,
    rounded to two decimal places.

    Never raises: non-finite input yields ``math.inf`` so callers treat the
    space as unreachable.
    """
    if not all(math.isfinite(v) for v in (lat1, lon1, lat2, lon2)):
        return math.inf

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lon / 2) ** 2
    )
    # Float error can push ``a`` a hair outside [0, 1] for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return round(EARTH_RADIUS_KM * c, 2)


def calculate_distances(
    spaces: list[ParkingSpaceSnapshot],
    user_location: UserLocation | None,
) -> list[ParkingSpaceSnapshot]:
    """Return copies of *spaces* annotated with their distance from the user.

    Without a location every space gets distance 0.
    """
    if user_location is None:
        return [space.model_copy(update={"distance": 0.0}) for space in spaces]

    return [
        space.model_copy(update={
            "distance": calculate_distance(
                user_location.lat,
                user_location.lng,
                space.coordinates.lat,
                space.coordinates.lng,
            ),
        })
        for space in spaces
    ]
