from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import pandas as pd

from ..data_ingestion.config import DEFAULT_INGESTION_CONFIG
from ..data_ingestion.normalize import normalize_spaces
from .models import ParkingSpaceSnapshot


class SpaceFeed(ABC):
    """Current parking spaces with live status and availability."""

    @abstractmethod
    def fetch_candidate_spaces(self) -> list[ParkingSpaceSnapshot]:
        """Return a fresh snapshot of every known space."""


class InMemorySpaceFeed(SpaceFeed):
    def __init__(self, spaces: list[ParkingSpaceSnapshot]) -> None:
        self._spaces = list(spaces)

    def fetch_candidate_spaces(self) -> list[ParkingSpaceSnapshot]:
        return list(self._spaces)


class CsvSpaceFeed(SpaceFeed):
    """Space feed over the processed ``parking_spaces.csv``.

    The file is re-read when its modification time changes so availability
    stays current without restarting the service.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._mtime: float | None = None
        self._spaces: list[ParkingSpaceSnapshot] = []

    def _load(self) -> list[ParkingSpaceSnapshot]:
        df = pd.read_csv(self._path, dtype={"id": str, "name": str, "address": str, "status": str})
        return normalize_spaces(df.to_dict(orient="records"))

    def fetch_candidate_spaces(self) -> list[ParkingSpaceSnapshot]:
        mtime = self._path.stat().st_mtime
        if self._mtime != mtime:
            self._spaces = self._load()
            self._mtime = mtime
        return list(self._spaces)


_default_feed: SpaceFeed | None = None


def get_space_feed() -> SpaceFeed:
    """Return the process-wide space feed, created on first call."""
    global _default_feed
    if _default_feed is None:
        _default_feed = CsvSpaceFeed(DEFAULT_INGESTION_CONFIG.spaces_path)
    return _default_feed
