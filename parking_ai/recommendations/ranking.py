from __future__ import annotations

import logging
import math
import time

from ..analytics.store import record_event
from ..geo.distance import calculate_distances
from .models import (
    ParkingSpaceSnapshot,
    SortKey,
    SpacePreferences,
    UserLocation,
)

logger = logging.getLogger(__name__)


def calculate_recommendation_score(
    space: ParkingSpaceSnapshot,
    distance: float,
    max_distance: float = 10,
    max_price: float = 1000,
) -> int:
    """Balanced 0-100 score: distance 40, price 30, rating 20, availability 10."""
    distance_score = max(0.0, (1 - distance / max_distance) * 40) if math.isfinite(distance) else 0.0
    price_score = max(0.0, (1 - space.price / max_price) * 30)
    rating_score = (space.rating / 5) * 20
    availability_score = min(space.available_spots / (space.total_spots or 1), 1) * 10

    return int(math.floor(distance_score + price_score + rating_score + availability_score + 0.5))


def _sort_key(sort_by: SortKey):
    if sort_by == SortKey.price:
        return lambda s: s.price
    if sort_by == SortKey.rating:
        return lambda s: -s.rating
    if sort_by == SortKey.score:
        return lambda s: -calculate_recommendation_score(s, s.distance or 0.0)
    return lambda s: s.distance or 0.0


def get_recommended_spaces(
    spaces: list[ParkingSpaceSnapshot],
    user_location: UserLocation | None = None,
    preferences: SpacePreferences | None = None,
) -> list[ParkingSpaceSnapshot]:
    """
    Deterministic ranking without the weighted model.

    Keeps bookable spaces within ``max_distance`` km and ``max_price``, sorted
    by the chosen key. The full filtered list is returned.
    """
    start_time = time.time()
    preferences = preferences or SpacePreferences()
    max_price = preferences.max_price if preferences.max_price is not None else math.inf

    with_distance = calculate_distances(spaces, user_location)
    matches = [
        space for space in with_distance
        if space.is_bookable
        and (space.distance or 0.0) <= preferences.max_distance
        and space.price <= max_price
    ]
    matches.sort(key=_sort_key(preferences.sort_by))

    logger.debug("%d of %d spaces match preferences", len(matches), len(spaces))
    record_event("recommendation", {
        "mode": "simple",
        "personalized": False,
        "total_spaces": len(spaces),
        "total_candidates": len(matches),
        "results_returned": len(matches),
        "history_status": "skipped",
        "labels": [],
        "demand_levels": [],
        "response_time_ms": round((time.time() - start_time) * 1000, 1),
    })
    return matches


def get_nearest_parking_space(
    spaces: list[ParkingSpaceSnapshot],
    user_location: UserLocation | None = None,
) -> ParkingSpaceSnapshot | None:
    recommended = get_recommended_spaces(
        spaces, user_location, SpacePreferences(sort_by=SortKey.distance),
    )
    return recommended[0] if recommended else None
