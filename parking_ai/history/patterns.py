from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta

from ..recommendations.cache import cache_get, cache_set, history_cache_key
from .config import DEFAULT_HISTORY_CONFIG, HistoryConfig
from .feed import HistoryFeed
from .models import (
    AvailabilityHistory,
    AvailabilityPrediction,
    HistoricalAggregate,
    HistoryQuery,
    HistoryResult,
    TransactionRecord,
    to_local_naive,
)

logger = logging.getLogger(__name__)


def aggregate_transactions(
    records: list[TransactionRecord],
    completed_status: str = DEFAULT_HISTORY_CONFIG.completed_status,
) -> dict[str, HistoricalAggregate]:
    """Roll transactions up into per-space booking statistics."""
    counts: Counter[str] = Counter()
    successful: Counter[str] = Counter()
    revenue: defaultdict[str, float] = defaultdict(float)
    peak_hours: defaultdict[str, Counter[int]] = defaultdict(Counter)

    for record in records:
        space_id = record.parking_space_id
        counts[space_id] += 1
        if record.status == completed_status:
            successful[space_id] += 1
        if record.total_price:
            revenue[space_id] += record.total_price
        if record.start_time is not None:
            peak_hours[space_id][record.start_time.hour] += 1

    patterns: dict[str, HistoricalAggregate] = {}
    for space_id, count in counts.items():
        patterns[space_id] = HistoricalAggregate(
            count=count,
            successful_bookings=successful[space_id],
            total_revenue=revenue[space_id],
            success_rate=successful[space_id] / count,
            average_revenue=revenue[space_id] / count,
            peak_hours=dict(peak_hours[space_id]),
        )
    return patterns


def get_historical_patterns(
    feed: HistoryFeed,
    user_id: str | None = None,
    *,
    now: datetime,
    config: HistoryConfig = DEFAULT_HISTORY_CONFIG,
    use_cache: bool = False,
) -> HistoryResult:
    """
    Aggregate the trailing window of transactions, optionally for one user.

    Never raises: a failing feed produces ``HistoryResult.failed`` with empty
    patterns so scoring continues with neutral historical scores.
    """
    now = to_local_naive(now)
    key = None
    if use_cache:
        key = history_cache_key(feed, user_id, now.timestamp(), config.cache_ttl_seconds)
        cached = cache_get(key)
        if cached is not None:
            return cached

    query = HistoryQuery(
        user_id=user_id,
        since=now - timedelta(days=config.window_days),
        order_by_recency=True,
        limit=config.global_limit,
    )

    try:
        records = feed.fetch_history(query)
    except Exception as exc:
        logger.warning("History fetch failed, using neutral historical scores", exc_info=True)
        return HistoryResult.failed(str(exc) or type(exc).__name__)

    result = HistoryResult(patterns=aggregate_transactions(records, config.completed_status))
    logger.debug("Aggregated %d transactions into %d spaces", len(records), len(result.patterns))

    if key is not None:
        cache_set(key, result, config.cache_ttl_seconds)
    return result


def predict_availability(
    feed: HistoryFeed,
    space_id: str,
    target_time: datetime,
    config: HistoryConfig = DEFAULT_HISTORY_CONFIG,
) -> AvailabilityPrediction:
    """
    Estimate the chance that *space_id* is free at *target_time*.

    Bookings that started within an hour of the target on the same weekday
    count as occupying that slot.
    """
    target_time = to_local_naive(target_time)
    try:
        bookings = feed.fetch_history(HistoryQuery(
            parking_space_id=space_id,
            order_by_recency=True,
            limit=config.availability_lookback,
        ))
    except Exception:
        logger.warning("Availability prediction failed for space %s", space_id, exc_info=True)
        return AvailabilityPrediction(space_id=space_id, probability=0.5, confidence="low")

    similar = 0
    total = 0
    for booking in bookings:
        if booking.start_time is None:
            continue
        if (
            abs(booking.start_time.hour - target_time.hour) <= 1
            and booking.start_time.weekday() == target_time.weekday()
        ):
            similar += 1
        total += 1

    occupancy = similar / total if total > 0 else 0.5
    if total > 10:
        confidence = "high"
    elif total > 5:
        confidence = "medium"
    else:
        confidence = "low"

    return AvailabilityPrediction(
        space_id=space_id,
        probability=1 - occupancy,
        confidence=confidence,
        history=AvailabilityHistory(total_bookings=total, similar_time_bookings=similar),
    )
