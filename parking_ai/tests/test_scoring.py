import math
from datetime import datetime

from parking_ai.history.models import HistoricalAggregate
from parking_ai.recommendations.models import (
    DemandLevel,
    ParkingSpaceSnapshot,
    RecommendationLabel,
    UserLocation,
)
from parking_ai.recommendations.scoring import (
    calculate_ai_score,
    calculate_confidence,
    get_recommendation_label,
)

WEDNESDAY_3PM = datetime(2024, 5, 15, 15, 0)  # demand 0.5 -> +10
TUESDAY_9AM = datetime(2024, 5, 14, 9, 0)  # demand 0.9 -> +2
SUNDAY_6AM = datetime(2024, 5, 12, 6, 0)  # demand 0.3 -> +14


def _space(**overrides) -> ParkingSpaceSnapshot:
    data = {
        "id": "s1",
        "price": 100.0,
        "total_spots": 10,
        "available_spots": 6,
        "rating": 4.0,
        "review_count": 10,
        "distance": 2.0,
    }
    data.update(overrides)
    return ParkingSpaceSnapshot(**data)


def _perfect_space(**overrides) -> ParkingSpaceSnapshot:
    return _space(distance=0.0, total_spots=10, available_spots=10, price=0.0, rating=5.0, **overrides)


# ── Sub-scores ───────────────────────────────────────────────────────────


def test_perfect_space_maxes_every_non_historical_subscore():
    score = calculate_ai_score(_perfect_space(), at=WEDNESDAY_3PM)

    assert score.breakdown.distance == 100
    assert score.breakdown.availability == 100
    assert score.breakdown.price == 100
    assert score.breakdown.rating == 100
    assert score.breakdown.historical == 50
    assert score.breakdown.demand_adjustment == 10
    # 35 + 25 + 15 + 15 + 5 + 10
    assert score.total_score == 105


def test_perfect_space_with_strong_history_maxes_all_five():
    history = {"s1": HistoricalAggregate(count=10, successful_bookings=10, success_rate=1.0)}
    score = calculate_ai_score(_perfect_space(), historical=history, at=WEDNESDAY_3PM)

    assert score.breakdown.historical == 100
    assert score.total_score == 110


def test_distance_beyond_ten_km_scores_zero():
    assert calculate_ai_score(_space(distance=10.0), at=WEDNESDAY_3PM).breakdown.distance == 0
    assert calculate_ai_score(_space(distance=42.0), at=WEDNESDAY_3PM).breakdown.distance == 0


def test_price_beyond_cap_scores_zero():
    assert calculate_ai_score(_space(price=500.0), at=WEDNESDAY_3PM).breakdown.price == 0
    assert calculate_ai_score(_space(price=900.0), at=WEDNESDAY_3PM).breakdown.price == 0


def test_zero_total_spots_does_not_divide_by_zero():
    score = calculate_ai_score(_space(total_spots=0, available_spots=0), at=WEDNESDAY_3PM)
    assert score.breakdown.availability == 0
    assert math.isfinite(score.total_score)


def test_historical_score_from_aggregate():
    history = {"s1": HistoricalAggregate(count=3, successful_bookings=2, success_rate=2 / 3)}
    score = calculate_ai_score(_space(), historical=history, at=WEDNESDAY_3PM)
    # (3 * 10 + 66.7) / 2
    assert score.breakdown.historical == 48


def test_zero_success_rate_is_not_treated_as_unknown():
    # A space whose bookings never completed earns no success credit; a zero
    # rate is deliberately not replaced by 0.5.
    history = {"s1": HistoricalAggregate(count=4, successful_bookings=0, success_rate=0.0)}
    score = calculate_ai_score(_space(), historical=history, at=WEDNESDAY_3PM)
    # (4 * 10 + 0) / 2
    assert score.breakdown.historical == 20


def test_historical_score_capped_at_100():
    history = {"s1": HistoricalAggregate(count=40, successful_bookings=40, success_rate=1.0)}
    score = calculate_ai_score(_space(), historical=history, at=WEDNESDAY_3PM)
    assert score.breakdown.historical == 100


def test_history_for_other_spaces_is_neutral():
    history = {"other": HistoricalAggregate(count=40, successful_bookings=40, success_rate=1.0)}
    score = calculate_ai_score(_space(), historical=history, at=WEDNESDAY_3PM)
    assert score.breakdown.historical == 50


# ── Demand ───────────────────────────────────────────────────────────────


def test_demand_adjustment_rewards_quiet_hours():
    quiet = calculate_ai_score(_space(), at=SUNDAY_6AM)
    busy = calculate_ai_score(_space(), at=TUESDAY_9AM)

    assert quiet.breakdown.demand_adjustment == 14
    assert busy.breakdown.demand_adjustment == 2
    assert quiet.total_score - busy.total_score == 12
    assert quiet.demand_level == DemandLevel.low
    assert busy.demand_level == DemandLevel.high
    assert calculate_ai_score(_space(), at=WEDNESDAY_3PM).demand_level == DemandLevel.medium


# ── Distance resolution and degenerate input ─────────────────────────────


def test_missing_distance_without_location_is_treated_as_zero():
    score = calculate_ai_score(_space(distance=None), None, at=WEDNESDAY_3PM)
    assert score.breakdown.distance == 100


def test_missing_distance_is_computed_from_location():
    space = _space(distance=None, coordinates={"lat": 0.0, "lng": 0.045})
    score = calculate_ai_score(space, UserLocation(lat=0.0, lng=0.0), at=WEDNESDAY_3PM)
    # ~5 km away
    assert score.breakdown.distance == 50


def test_nan_distance_scores_as_worst_case():
    score = calculate_ai_score(_space(distance=float("nan")), at=WEDNESDAY_3PM)
    assert score.breakdown.distance == 0
    assert math.isfinite(score.total_score)


def test_infinite_distance_scores_as_worst_case():
    score = calculate_ai_score(_space(distance=float("inf")), at=WEDNESDAY_3PM)
    assert score.breakdown.distance == 0


def test_total_score_finite_across_inputs():
    for total in (0, 1, 7, 100):
        for available in range(0, total + 1, max(1, total // 3)):
            for distance in (None, 0.0, 0.3, 5.5, 1e9):
                space = _space(total_spots=total, available_spots=available, distance=distance)
                score = calculate_ai_score(space, at=WEDNESDAY_3PM)
                assert isinstance(score.total_score, int)
                assert math.isfinite(score.total_score)


def test_total_score_rounds_half_up():
    # 0.35 * 100 + 0.25 * 50 + 0.15 * 0 + 0.15 * 0 + 0.1 * 50 + 10 = 62.5
    space = _space(distance=0.0, total_spots=10, available_spots=5, price=500.0, rating=0.0)
    assert calculate_ai_score(space, at=WEDNESDAY_3PM).total_score == 63


# ── Confidence ───────────────────────────────────────────────────────────


class TestConfidence:
    def test_baseline(self):
        space = _space(rating=3.0, review_count=0)
        assert calculate_confidence(space, 5.0, 0.1) == 0.5

    def test_all_bonuses_cap_at_one(self):
        space = _space(rating=4.9, review_count=120)
        assert calculate_confidence(space, 0.2, 0.9) == 1.0

    def test_mid_tier_bonuses(self):
        space = _space(rating=4.2, review_count=51)
        # 0.5 + 0.1 + 0.1 + 0.05 + 0.05
        assert calculate_confidence(space, 2.0, 0.4) == 0.8

    def test_boundaries_are_strict(self):
        space = _space(rating=3.9, review_count=50)
        # distance 3 and ratio 0.3 earn nothing
        assert calculate_confidence(space, 3.0, 0.3) == 0.5


# ── Labels ───────────────────────────────────────────────────────────────


class TestLabels:
    def test_best_choice_needs_confidence(self):
        assert get_recommendation_label(90, 0.85) == RecommendationLabel.best_choice
        assert get_recommendation_label(90, 0.75) == RecommendationLabel.excellent_option
        assert get_recommendation_label(90, 0.5) == RecommendationLabel.great_choice

    def test_lower_tiers(self):
        assert get_recommendation_label(70, 0.5) == RecommendationLabel.great_choice
        assert get_recommendation_label(60, 0.9) == RecommendationLabel.good_option
        assert get_recommendation_label(54, 1.0) == RecommendationLabel.available

    def test_thresholds_are_inclusive(self):
        assert get_recommendation_label(85, 0.8) == RecommendationLabel.best_choice
        assert get_recommendation_label(75, 0.7) == RecommendationLabel.excellent_option
        assert get_recommendation_label(65, 0.0) == RecommendationLabel.great_choice
        assert get_recommendation_label(55, 0.0) == RecommendationLabel.good_option
