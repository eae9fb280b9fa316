from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .data_ingestion.normalize import normalize_spaces
from .geo.distance import calculate_distance
from .history.config import DEFAULT_HISTORY_CONFIG
from .history.feed import HistoryFeed, get_history_feed
from .history.models import AvailabilityPrediction, to_local_naive
from .history.patterns import predict_availability
from .recommendations.cache import get_cache_stats
from .recommendations.data_store import SpaceFeed, get_space_feed
from .recommendations.engine import recommend
from .recommendations.models import (
    AIRecommendationRequest,
    DistanceResponse,
    NearestSpaceRequest,
    NearestSpaceResponse,
    ParkingSpaceSnapshot,
    PersonalizedRecommendationRequest,
    RecommendationResponse,
    SimpleRecommendationRequest,
    SpaceListResponse,
)
from .recommendations.personalization import personalize
from .recommendations.ranking import get_nearest_parking_space, get_recommended_spaces

logger = logging.getLogger(__name__)

app = FastAPI(title="Parking Recommendation API", version="2.0.0")

_USE_CACHE = DEFAULT_HISTORY_CONFIG.cache_enabled


def _resolve_spaces(
    raw_spaces: list[dict[str, Any]] | None,
    feed: SpaceFeed,
) -> list[ParkingSpaceSnapshot]:
    """Spaces sent with the request, or the feed's current snapshot."""
    if raw_spaces is not None:
        return normalize_spaces(raw_spaces)
    try:
        return feed.fetch_candidate_spaces()
    except Exception:
        logger.exception("Space feed unavailable")
        raise HTTPException(status_code=503, detail="Parking space feed unavailable")


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/spaces", response_model=SpaceListResponse)
def spaces(feed: SpaceFeed = Depends(get_space_feed)) -> SpaceListResponse:
    current = _resolve_spaces(None, feed)
    return SpaceListResponse(spaces=current, total=len(current))


@app.get("/distance", response_model=DistanceResponse)
def distance(
    lat1: float = Query(...),
    lon1: float = Query(...),
    lat2: float = Query(...),
    lon2: float = Query(...),
) -> DistanceResponse:
    return DistanceResponse(distance_km=calculate_distance(lat1, lon1, lat2, lon2))


# ── Recommendation endpoints ─────────────────────────────────────────────


@app.post("/recommendations/ai", response_model=RecommendationResponse)
def ai_recommendations(
    body: AIRecommendationRequest,
    space_feed: SpaceFeed = Depends(get_space_feed),
    history_feed: HistoryFeed = Depends(get_history_feed),
) -> RecommendationResponse:
    result = recommend(
        _resolve_spaces(body.spaces, space_feed),
        body.user_location,
        body.user_id,
        body.options,
        history_feed=history_feed,
        use_cache=_USE_CACHE,
    )
    return RecommendationResponse(
        recommendations=result.recommendations,
        total_candidates=result.total_candidates,
        history_status=result.history.status,
    )


@app.post("/recommendations/personalized", response_model=RecommendationResponse)
def personalized_recommendations(
    body: PersonalizedRecommendationRequest,
    space_feed: SpaceFeed = Depends(get_space_feed),
    history_feed: HistoryFeed = Depends(get_history_feed),
) -> RecommendationResponse:
    result = personalize(
        body.user_id,
        _resolve_spaces(body.spaces, space_feed),
        body.user_location,
        body.options,
        history_feed=history_feed,
        use_cache=_USE_CACHE,
    )
    return RecommendationResponse(
        recommendations=result.recommendations,
        total_candidates=result.total_candidates,
        history_status=result.history.status,
    )


@app.post("/recommendations", response_model=SpaceListResponse)
def simple_recommendations(
    body: SimpleRecommendationRequest,
    space_feed: SpaceFeed = Depends(get_space_feed),
) -> SpaceListResponse:
    matches = get_recommended_spaces(
        _resolve_spaces(body.spaces, space_feed),
        body.user_location,
        body.preferences,
    )
    return SpaceListResponse(spaces=matches, total=len(matches))


@app.post("/spaces/nearest", response_model=NearestSpaceResponse)
def nearest_space(
    body: NearestSpaceRequest,
    space_feed: SpaceFeed = Depends(get_space_feed),
) -> NearestSpaceResponse:
    nearest = get_nearest_parking_space(
        _resolve_spaces(body.spaces, space_feed),
        body.user_location,
    )
    return NearestSpaceResponse(space=nearest)


@app.get("/spaces/{space_id}/availability", response_model=AvailabilityPrediction)
def space_availability(
    space_id: str,
    at: datetime | None = None,
    history_feed: HistoryFeed = Depends(get_history_feed),
) -> AvailabilityPrediction:
    return predict_availability(history_feed, space_id, to_local_naive(at or datetime.now()))


# ── Operational endpoints ────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())


@app.get("/cache/stats")
def cache_stats() -> dict:
    return get_cache_stats()
