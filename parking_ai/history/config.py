from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class HistoryConfig:
    window_days: int = 30
    global_limit: int = 1000
    personal_limit: int = 50
    availability_lookback: int = 100
    completed_status: str = "completed"
    cache_ttl_seconds: int = int(os.getenv("HISTORY_CACHE_TTL", "300"))
    cache_enabled: bool = os.getenv("HISTORY_CACHE_ENABLED", "true").lower() != "false"


DEFAULT_HISTORY_CONFIG = HistoryConfig()
