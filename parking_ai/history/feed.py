from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

import pandas as pd

from ..data_ingestion.config import DEFAULT_INGESTION_CONFIG
from ..data_ingestion.ingest import HISTORY_COLUMNS
from ..data_ingestion.normalize import normalize_transactions
from .models import HistoryQuery, TransactionRecord


class HistoryFeed(ABC):
    """Read access to past parking transactions."""

    _cache_id: str | None = None

    @property
    def cache_id(self) -> str:
        """Stable identity of this feed instance for cached aggregates."""
        if self._cache_id is None:
            self._cache_id = f"{type(self).__name__}:{uuid.uuid4().hex}"
        return self._cache_id

    @abstractmethod
    def fetch_history(self, query: HistoryQuery) -> list[TransactionRecord]:
        """Return transactions matching *query*, most recent first when asked."""


class InMemoryHistoryFeed(HistoryFeed):
    def __init__(self, records: list[TransactionRecord]) -> None:
        self._records = list(records)

    def fetch_history(self, query: HistoryQuery) -> list[TransactionRecord]:
        selected = [
            r for r in self._records
            if (query.user_id is None or r.user_id == query.user_id)
            and (query.parking_space_id is None or r.parking_space_id == query.parking_space_id)
            and (query.since is None or (r.created_at is not None and r.created_at >= query.since))
        ]
        if query.order_by_recency:
            selected.sort(key=lambda r: r.created_at or datetime.min, reverse=True)
        if query.limit is not None:
            selected = selected[: query.limit]
        return selected


class CsvHistoryFeed(HistoryFeed):
    """History feed over the processed ``parking_history.csv``.

    Re-read when the file's modification time changes, like the space feed,
    so a new ingestion run is picked up without a restart.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._mtime: float | None = None
        self._df: pd.DataFrame | None = None

    @property
    def cache_id(self) -> str:
        # a re-ingested file must not be served aggregates of the previous one
        try:
            mtime = self._path.stat().st_mtime
        except OSError:
            mtime = None
        return f"{type(self).__name__}:{self._path}:{mtime}"

    def _frame(self) -> pd.DataFrame:
        mtime = self._path.stat().st_mtime
        if self._df is None or self._mtime != mtime:
            df = pd.read_csv(
                self._path,
                dtype={"parking_space_id": str, "user_id": str, "status": str},
            )
            df["_created_ts"] = pd.to_datetime(df["created_at"], format="ISO8601", errors="coerce")
            self._df = df
            self._mtime = mtime
        return self._df

    def fetch_history(self, query: HistoryQuery) -> list[TransactionRecord]:
        df = self._frame()

        mask = pd.Series(True, index=df.index)
        if query.user_id is not None:
            mask = mask & (df["user_id"] == query.user_id)
        if query.parking_space_id is not None:
            mask = mask & (df["parking_space_id"] == query.parking_space_id)
        if query.since is not None:
            mask = mask & (df["_created_ts"] >= pd.Timestamp(query.since))

        rows = df.loc[mask]
        if query.order_by_recency:
            rows = rows.sort_values("_created_ts", ascending=False, na_position="last")
        if query.limit is not None:
            rows = rows.head(query.limit)

        return normalize_transactions(rows[HISTORY_COLUMNS].to_dict(orient="records"))


_default_feed: HistoryFeed | None = None


def get_history_feed() -> HistoryFeed:
    """Return the process-wide history feed backed by the processed CSV."""
    global _default_feed
    if _default_feed is None:
        _default_feed = CsvHistoryFeed(DEFAULT_INGESTION_CONFIG.history_path)
    return _default_feed
