from __future__ import annotations

import math
from datetime import datetime

from ..geo.distance import calculate_distance
from ..history.models import HistoricalAggregate
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .demand import predict_demand_at
from .models import (
    AIScore,
    DemandLevel,
    ParkingSpaceSnapshot,
    RecommendationLabel,
    ScoreBreakdown,
    UserLocation,
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _finite_or(value: float, default: float) -> float:
    return value if math.isfinite(value) else default


def resolve_distance(space: ParkingSpaceSnapshot, user_location: UserLocation | None) -> float:
    """Known distance of *space* in km; 0 when it cannot be determined."""
    if space.distance is not None:
        return space.distance
    if user_location is None:
        return 0.0
    return calculate_distance(
        user_location.lat,
        user_location.lng,
        space.coordinates.lat,
        space.coordinates.lng,
    )


def _historical_score(
    space_id: str,
    historical: dict[str, HistoricalAggregate] | None,
    config: ScoringConfig,
) -> float:
    aggregate = historical.get(space_id) if historical else None
    if aggregate is None:
        return config.neutral_historical_score
    return min(100.0, (aggregate.count * 10 + aggregate.success_rate * 100) / 2)


def calculate_confidence(space: ParkingSpaceSnapshot, distance: float, availability_ratio: float) -> float:
    """How sure the engine is about a recommendation, from 0.5 up to 1.0."""
    confidence = 0.5

    if distance < 1:
        confidence += 0.2
    elif distance < 3:
        confidence += 0.1

    if availability_ratio > 0.5:
        confidence += 0.15
    elif availability_ratio > 0.3:
        confidence += 0.1

    if space.rating >= 4.5:
        confidence += 0.1
    elif space.rating >= 4.0:
        confidence += 0.05

    if space.review_count > 50:
        confidence += 0.05

    return round(min(1.0, confidence), 2)


def demand_level(demand_factor: float) -> DemandLevel:
    if demand_factor > 0.7:
        return DemandLevel.high
    if demand_factor > 0.4:
        return DemandLevel.medium
    return DemandLevel.low


def calculate_ai_score(
    space: ParkingSpaceSnapshot,
    user_location: UserLocation | None = None,
    historical: dict[str, HistoricalAggregate] | None = None,
    *,
    at: datetime,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> AIScore:
    """
    Multi-factor score for one space at evaluation time *at*.

    Distance, availability, price, rating and historical sub-scores are each
    0-100 and weighted; the demand adjustment is added on top, so the total
    can exceed 100. Non-finite inputs score as the worst case.
    """
    w = config.weights

    distance = max(0.0, _finite_or(resolve_distance(space, user_location), math.inf))
    distance_score = max(0.0, (1 - distance / config.max_distance_km) * 100)

    availability_ratio = space.available_spots / (space.total_spots or 1)
    availability_score = availability_ratio * 100

    price = _finite_or(space.price, math.inf)
    price_score = max(0.0, (1 - price / config.max_price) * 100)

    rating_score = (_finite_or(space.rating, 0.0) / config.max_rating) * 100

    historical_score = _historical_score(space.id, historical, config)

    demand_factor = predict_demand_at(at)
    demand_adjustment = (1 - demand_factor) * config.demand_bonus

    weighted = (
        distance_score * w["distance"]
        + availability_score * w["availability"]
        + price_score * w["price"]
        + rating_score * w["rating"]
        + historical_score * w["historical"]
        + demand_adjustment
    )

    return AIScore(
        total_score=_round_half_up(weighted),
        breakdown=ScoreBreakdown(
            distance=_round_half_up(distance_score),
            availability=_round_half_up(availability_score),
            price=_round_half_up(price_score),
            rating=_round_half_up(rating_score),
            historical=_round_half_up(historical_score),
            demand_adjustment=_round_half_up(demand_adjustment),
        ),
        confidence=calculate_confidence(space, distance, availability_ratio),
        demand_level=demand_level(demand_factor),
    )


def get_recommendation_label(score: float, confidence: float) -> RecommendationLabel:
    if score >= 85 and confidence >= 0.8:
        return RecommendationLabel.best_choice
    if score >= 75 and confidence >= 0.7:
        return RecommendationLabel.excellent_option
    if score >= 65:
        return RecommendationLabel.great_choice
    if score >= 55:
        return RecommendationLabel.good_option
    return RecommendationLabel.available
