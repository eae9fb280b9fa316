from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Any

from ..history.config import DEFAULT_HISTORY_CONFIG, HistoryConfig
from ..history.feed import HistoryFeed
from ..history.models import HistoryQuery, TransactionRecord, UserPreferenceProfile
from .engine import RecommendationResult, recommend
from .models import (
    ParkingSpaceSnapshot,
    RecommendationOptions,
    ScoredSpace,
    UserLocation,
)

logger = logging.getLogger(__name__)

FREQUENT_SPACE_BOOST = 10
PRICE_MATCH_BOOST = 15
PRICE_MATCH_TOLERANCE = 50


def build_preference_profile(bookings: list[TransactionRecord]) -> UserPreferenceProfile:
    """Derive a user's price band, favourite spaces and usual start hours."""
    preferred: Counter[str] = Counter()
    hours: list[int] = []
    spent = 0.0

    for booking in bookings:
        if booking.total_price:
            spent += booking.total_price
        preferred[booking.parking_space_id] += 1
        if booking.start_time is not None:
            hours.append(booking.start_time.hour)

    return UserPreferenceProfile(
        booking_count=len(bookings),
        average_price=spent / len(bookings) if bookings else 0.0,
        preferred_locations=dict(preferred),
        booking_hours=hours,
    )


def personalized_boost(space: ParkingSpaceSnapshot, profile: UserPreferenceProfile) -> int:
    boost = profile.preferred_locations.get(space.id, 0) * FREQUENT_SPACE_BOOST
    if abs(space.price - profile.average_price) < PRICE_MATCH_TOLERANCE:
        boost += PRICE_MATCH_BOOST
    return boost


def apply_personalization(
    spaces: list[ParkingSpaceSnapshot],
    profile: UserPreferenceProfile,
) -> list[ParkingSpaceSnapshot]:
    return [
        space.model_copy(update={"personalized_boost": personalized_boost(space, profile)})
        for space in spaces
    ]


def personalize(
    user_id: str,
    spaces: list[ParkingSpaceSnapshot],
    user_location: UserLocation | None = None,
    options: RecommendationOptions | None = None,
    *,
    history_feed: HistoryFeed | None = None,
    now: datetime | None = None,
    history_config: HistoryConfig = DEFAULT_HISTORY_CONFIG,
    use_cache: bool = False,
) -> RecommendationResult:
    """
    Recommendations annotated with a per-user ``personalized_boost``.

    The boost is attached to each candidate but is not part of the weighted
    score, so ranking matches the non-personalized path. If the user's
    history cannot be read, falls back to plain recommendations.
    """
    bookings: list[TransactionRecord] | None = None
    if history_feed is not None:
        try:
            bookings = history_feed.fetch_history(HistoryQuery(
                user_id=user_id,
                order_by_recency=True,
                limit=history_config.personal_limit,
            ))
        except Exception:
            logger.warning(
                "Personalization failed for user %s, falling back to standard ranking",
                user_id,
                exc_info=True,
            )

    if bookings is None:
        return recommend(
            spaces, user_location, user_id, options,
            history_feed=history_feed, now=now,
            history_config=history_config, use_cache=use_cache,
        )

    profile = build_preference_profile(bookings)
    return recommend(
        apply_personalization(spaces, profile), user_location, user_id, options,
        history_feed=history_feed, now=now,
        history_config=history_config, use_cache=use_cache, mode="personalized",
    )


def get_personalized_recommendations(
    user_id: str,
    spaces: list[ParkingSpaceSnapshot],
    user_location: UserLocation | None = None,
    **kwargs: Any,
) -> list[ScoredSpace]:
    return personalize(user_id, spaces, user_location, **kwargs).recommendations
