import pytest

from parking_ai.analytics.store import clear_events, get_events
from parking_ai.recommendations.models import (
    ParkingSpaceSnapshot,
    SortKey,
    SpacePreferences,
    SpaceStatus,
    UserLocation,
)
from parking_ai.recommendations.ranking import (
    calculate_recommendation_score,
    get_nearest_parking_space,
    get_recommended_spaces,
)

USER = UserLocation(lat=0.0, lng=0.0)


def _space(space_id: str, lng: float, **overrides) -> ParkingSpaceSnapshot:
    data = {
        "id": space_id,
        "coordinates": {"lat": 0.0, "lng": lng},
        "price": 100.0,
        "total_spots": 10,
        "available_spots": 5,
        "rating": 4.0,
    }
    data.update(overrides)
    return ParkingSpaceSnapshot(**data)


# roughly 1.1 km, 3.3 km, 5.6 km and 22 km east of the user
NEAR = _space("near", 0.01, price=300.0, rating=3.0)
MID = _space("mid", 0.03, price=50.0, rating=4.5)
FAR = _space("far", 0.05, price=150.0, rating=5.0)
REMOTE = _space("remote", 0.2, price=10.0)
FULL = _space("full", 0.005, available_spots=0)
CLOSED = _space("closed", 0.006, status=SpaceStatus.occupied)

ALL = [FAR, REMOTE, FULL, NEAR, CLOSED, MID]


@pytest.fixture(autouse=True)
def _clean_events():
    clear_events()
    yield
    clear_events()


# ── Balanced score ───────────────────────────────────────────────────────


def test_balanced_score_weights():
    space = _space("x", 0.0)
    # distance 32 + price 27 + rating 16 + availability 5
    assert calculate_recommendation_score(space, 2.0) == 80


def test_balanced_score_floors_at_zero_beyond_limits():
    space = _space("x", 0.0, price=2000.0, rating=0.0, available_spots=0)
    assert calculate_recommendation_score(space, 25.0) == 0


def test_balanced_score_perfect_space():
    space = _space("x", 0.0, price=0.0, rating=5.0, available_spots=10)
    assert calculate_recommendation_score(space, 0.0) == 100


# ── Filtering and sorting ────────────────────────────────────────────────


def test_default_preferences_sort_by_distance_and_drop_remote():
    results = get_recommended_spaces(ALL, USER)
    assert [s.id for s in results] == ["near", "mid", "far"]
    assert all(s.distance is not None for s in results)


def test_unbookable_spaces_never_returned():
    results = get_recommended_spaces(ALL, USER, SpacePreferences(max_distance=100))
    ids = {s.id for s in results}
    assert "full" not in ids
    assert "closed" not in ids
    assert "remote" in ids


def test_max_price_filter():
    results = get_recommended_spaces(ALL, USER, SpacePreferences(max_price=150))
    assert [s.id for s in results] == ["mid", "far"]


def test_sort_by_price():
    results = get_recommended_spaces(ALL, USER, SpacePreferences(sort_by=SortKey.price))
    assert [s.id for s in results] == ["mid", "far", "near"]


def test_sort_by_rating():
    results = get_recommended_spaces(ALL, USER, SpacePreferences(sort_by=SortKey.rating))
    assert [s.id for s in results] == ["far", "mid", "near"]


def test_sort_by_score():
    results = get_recommended_spaces(ALL, USER, SpacePreferences(sort_by=SortKey.score))
    scores = [calculate_recommendation_score(s, s.distance) for s in results]
    assert scores == sorted(scores, reverse=True)


def test_without_location_distances_are_zero():
    results = get_recommended_spaces(ALL, None)
    assert len(results) == 4
    assert all(s.distance == 0.0 for s in results)


def test_input_spaces_untouched():
    get_recommended_spaces(ALL, USER)
    assert all(s.distance is None for s in ALL)


def test_simple_ranking_is_recorded():
    get_recommended_spaces(ALL, USER)
    events = get_events("recommendation")
    assert len(events) == 1
    assert events[0]["mode"] == "simple"
    assert events[0]["results_returned"] == 3


# ── Nearest space ────────────────────────────────────────────────────────


def test_nearest_space():
    nearest = get_nearest_parking_space(ALL, USER)
    assert nearest is not None
    assert nearest.id == "near"


def test_nearest_space_none_when_nothing_bookable():
    assert get_nearest_parking_space([FULL, CLOSED], USER) is None
