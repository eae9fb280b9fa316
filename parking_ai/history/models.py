from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes become local naive time; naive ones pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class TransactionRecord(BaseModel):
    parking_space_id: str = Field(..., min_length=1)
    user_id: str | None = None
    status: str = ""
    total_price: float | None = None
    start_time: datetime | None = None
    created_at: datetime | None = None

    # Hour-of-day and window comparisons are done in local naive time
    @field_validator("start_time", "created_at")
    @classmethod
    def _local_naive(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value) if value is not None else None


class HistoricalAggregate(BaseModel):
    count: int = 0
    successful_bookings: int = 0
    total_revenue: float = 0.0
    success_rate: float = 0.0
    average_revenue: float = 0.0
    peak_hours: dict[int, int] = Field(
        default_factory=dict, description="Hour of day -> bookings started"
    )


class UserPreferenceProfile(BaseModel):
    booking_count: int = 0
    average_price: float = 0.0
    preferred_locations: dict[str, int] = Field(
        default_factory=dict, description="Space id -> times used"
    )
    booking_hours: list[int] = Field(default_factory=list)


class AvailabilityHistory(BaseModel):
    total_bookings: int
    similar_time_bookings: int


class AvailabilityPrediction(BaseModel):
    space_id: str
    probability: float = Field(..., ge=0.0, le=1.0)
    confidence: str
    history: AvailabilityHistory | None = None


@dataclass(frozen=True)
class HistoryQuery:
    user_id: str | None = None
    parking_space_id: str | None = None
    since: datetime | None = None
    order_by_recency: bool = True
    limit: int | None = None


class HistoryStatus(str, Enum):
    ok = "ok"
    failed = "failed"
    skipped = "skipped"


@dataclass(frozen=True)
class HistoryResult:
    """Outcome of a historical aggregation.

    ``failed`` and ``skipped`` both carry empty patterns, so scoring falls
    back to the neutral historical score; callers can still tell them apart.
    """

    patterns: dict[str, HistoricalAggregate] = field(default_factory=dict)
    status: HistoryStatus = HistoryStatus.ok
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == HistoryStatus.ok

    @classmethod
    def failed(cls, error: str) -> HistoryResult:
        return cls(patterns={}, status=HistoryStatus.failed, error=error)

    @classmethod
    def skipped(cls) -> HistoryResult:
        return cls(patterns={}, status=HistoryStatus.skipped)
