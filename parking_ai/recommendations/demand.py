from __future__ import annotations

from datetime import datetime

PEAK_HOURS = frozenset({8, 9, 10, 12, 13, 14, 17, 18, 19})
WEEKEND_BUSY_HOURS = range(10, 21)

WEEKDAY_PEAK_DEMAND = 0.9
WEEKDAY_DEMAND = 0.5
WEEKEND_DEMAND = 0.7
QUIET_DEMAND = 0.3


def day_of_week(at: datetime) -> int:
    """Day index with 0 = Sunday ... 6 = Saturday."""
    return (at.weekday() + 1) % 7


def predict_demand(hour: int, day: int) -> float:
    """
    Expected parking demand in [0, 1] for an hour of day (0-23) and a day of
    week (0 = Sunday).

    Weekday rush hours (8-10, 12-14, 17-19) are busiest, weekend daytime
    (10-20) next, other weekday hours medium, everything else quiet.
    """
    is_weekday = 1 <= day <= 5
    is_weekend = day in (0, 6)

    if is_weekday and hour in PEAK_HOURS:
        return WEEKDAY_PEAK_DEMAND
    if is_weekday:
        return WEEKDAY_DEMAND
    if is_weekend and hour in WEEKEND_BUSY_HOURS:
        return WEEKEND_DEMAND
    return QUIET_DEMAND


def predict_demand_at(at: datetime) -> float:
    return predict_demand(at.hour, day_of_week(at))
