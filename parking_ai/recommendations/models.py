from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..history.models import HistoryStatus


class SpaceStatus(str, Enum):
    available = "available"
    occupied = "occupied"
    full = "full"
    other = "other"


class DemandLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class RecommendationLabel(str, Enum):
    best_choice = "Best Choice"
    excellent_option = "Excellent Option"
    great_choice = "Great Choice"
    good_option = "Good Option"
    available = "Available"


class SortKey(str, Enum):
    distance = "distance"
    price = "price"
    rating = "rating"
    score = "score"


class Coordinates(BaseModel):
    lat: float = 0.0
    lng: float = 0.0


class UserLocation(BaseModel):
    lat: float
    lng: float


class ParkingSpaceSnapshot(BaseModel):
    """Point-in-time view of a parking space as supplied by the space feed."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str | None = None
    address: str | None = None
    coordinates: Coordinates = Field(default_factory=Coordinates)
    price: float = Field(default=0.0, ge=0.0, description="Price per hour")
    total_spots: int = Field(default=0, ge=0)
    available_spots: int = Field(default=0, ge=0)
    status: SpaceStatus = SpaceStatus.available
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    review_count: int = Field(default=0, ge=0)
    distance: float | None = Field(
        default=None, description="Distance from the user in km, set by the engine"
    )
    personalized_boost: int | None = None

    @model_validator(mode="after")
    def _available_within_total(self) -> ParkingSpaceSnapshot:
        if self.available_spots > self.total_spots:
            raise ValueError("available_spots cannot exceed total_spots")
        return self

    @property
    def is_bookable(self) -> bool:
        return self.status == SpaceStatus.available and self.available_spots > 0


class ScoreBreakdown(BaseModel):
    distance: int
    availability: int
    price: int
    rating: int
    historical: int
    demand_adjustment: int


class AIScore(BaseModel):
    total_score: int
    breakdown: ScoreBreakdown
    confidence: float = Field(..., ge=0.0, le=1.0)
    demand_level: DemandLevel


class ScoredSpace(ParkingSpaceSnapshot):
    ai_score: int
    score_breakdown: ScoreBreakdown
    confidence: float = Field(..., ge=0.0, le=1.0)
    demand_level: DemandLevel
    recommendation: RecommendationLabel


class RecommendationOptions(BaseModel):
    max_results: int = Field(default=3, ge=0)
    min_score: float = 50
    include_historical: bool = True


class SpacePreferences(BaseModel):
    max_distance: float = Field(default=10.0, ge=0.0, description="km")
    max_price: float | None = Field(default=None, ge=0.0)
    sort_by: SortKey = SortKey.distance


# ── HTTP request / response bodies ───────────────────────────────────────
# ``spaces`` arrive as loosely shaped documents and go through the store
# adapter before reaching the engine. When omitted, the space feed is used.


class AIRecommendationRequest(BaseModel):
    spaces: list[dict[str, Any]] | None = None
    user_location: UserLocation | None = None
    user_id: str | None = None
    options: RecommendationOptions = Field(default_factory=RecommendationOptions)


class PersonalizedRecommendationRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    spaces: list[dict[str, Any]] | None = None
    user_location: UserLocation | None = None
    options: RecommendationOptions | None = None


class SimpleRecommendationRequest(BaseModel):
    spaces: list[dict[str, Any]] | None = None
    user_location: UserLocation | None = None
    preferences: SpacePreferences = Field(default_factory=SpacePreferences)


class NearestSpaceRequest(BaseModel):
    spaces: list[dict[str, Any]] | None = None
    user_location: UserLocation | None = None


class RecommendationResponse(BaseModel):
    recommendations: list[ScoredSpace]
    total_candidates: int
    history_status: HistoryStatus


class SpaceListResponse(BaseModel):
    spaces: list[ParkingSpaceSnapshot]
    total: int


class NearestSpaceResponse(BaseModel):
    space: ParkingSpaceSnapshot | None


class DistanceResponse(BaseModel):
    distance_km: float
