from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ScoringConfig:
    weights: dict[str, float] = field(default_factory=lambda: {
        "distance": 0.35,
        "availability": 0.25,
        "price": 0.15,
        "rating": 0.15,
        "historical": 0.10,
    })
    max_distance_km: float = 10.0
    max_price: float = 500.0
    max_rating: float = 5.0
    neutral_historical_score: float = 50.0
    demand_bonus: float = 20.0


DEFAULT_SCORING_CONFIG = ScoringConfig()
