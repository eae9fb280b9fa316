from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..analytics.store import record_event
from ..geo.distance import calculate_distance
from ..history.config import DEFAULT_HISTORY_CONFIG, HistoryConfig
from ..history.feed import HistoryFeed
from ..history.models import HistoryResult, to_local_naive
from ..history.patterns import get_historical_patterns
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .models import (
    ParkingSpaceSnapshot,
    RecommendationOptions,
    ScoredSpace,
    UserLocation,
)
from .scoring import calculate_ai_score, get_recommendation_label

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecommendationResult:
    recommendations: list[ScoredSpace]
    total_candidates: int
    history: HistoryResult = field(default_factory=HistoryResult.skipped)


def score_space(
    space: ParkingSpaceSnapshot,
    user_location: UserLocation | None,
    history: HistoryResult,
    *,
    now: datetime,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ScoredSpace:
    """Annotate a copy of *space* with its distance, score and label."""
    if space.distance is None and user_location is not None:
        space = space.model_copy(update={
            "distance": calculate_distance(
                user_location.lat,
                user_location.lng,
                space.coordinates.lat,
                space.coordinates.lng,
            ),
        })

    ai_score = calculate_ai_score(space, user_location, history.patterns, at=now, config=config)

    return ScoredSpace(
        **space.model_dump(),
        ai_score=ai_score.total_score,
        score_breakdown=ai_score.breakdown,
        confidence=ai_score.confidence,
        demand_level=ai_score.demand_level,
        recommendation=get_recommendation_label(ai_score.total_score, ai_score.confidence),
    )


def recommend(
    spaces: list[ParkingSpaceSnapshot],
    user_location: UserLocation | None = None,
    user_id: str | None = None,
    options: RecommendationOptions | None = None,
    *,
    history_feed: HistoryFeed | None = None,
    now: datetime | None = None,
    scoring_config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    history_config: HistoryConfig = DEFAULT_HISTORY_CONFIG,
    use_cache: bool = False,
    mode: str = "ai",
) -> RecommendationResult:
    """
    Rank bookable spaces by AI score.

    Steps: historical aggregation (optional, failure-tolerant), bookable
    filter, distance + score + label per candidate, ``min_score`` cut,
    descending sort, truncation to ``max_results``. Input spaces are never
    mutated.
    """
    start_time = time.time()
    options = options or RecommendationOptions()
    now = to_local_naive(now or datetime.now())

    # --- Historical patterns ---
    if options.include_historical and history_feed is not None:
        history = get_historical_patterns(
            history_feed, user_id, now=now, config=history_config, use_cache=use_cache,
        )
    else:
        history = HistoryResult.skipped()

    # --- Hard filter ---
    candidates = [space for space in spaces if space.is_bookable]

    # --- Scoring ---
    scored = [
        score_space(space, user_location, history, now=now, config=scoring_config)
        for space in candidates
    ]

    kept = [space for space in scored if space.ai_score >= options.min_score]
    kept.sort(key=lambda s: s.ai_score, reverse=True)
    top = kept[: options.max_results]

    logger.debug(
        "Scored %d of %d spaces, %d above min score %s",
        len(candidates), len(spaces), len(kept), options.min_score,
    )

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("recommendation", {
        "mode": mode,
        "personalized": mode == "personalized",
        "total_spaces": len(spaces),
        "total_candidates": len(candidates),
        "results_returned": len(top),
        "history_status": history.status.value,
        "labels": [s.recommendation.value for s in top],
        "demand_levels": [s.demand_level.value for s in top],
        "response_time_ms": elapsed_ms,
    })

    return RecommendationResult(
        recommendations=top,
        total_candidates=len(candidates),
        history=history,
    )


def get_ai_recommendations(
    spaces: list[ParkingSpaceSnapshot],
    user_location: UserLocation | None = None,
    user_id: str | None = None,
    options: RecommendationOptions | None = None,
    **kwargs: Any,
) -> list[ScoredSpace]:
    """Ranked recommendations only; see :func:`recommend` for the full result."""
    return recommend(spaces, user_location, user_id, options, **kwargs).recommendations
