from __future__ import annotations

import hashlib
import json
import time
from collections import Counter
from typing import TYPE_CHECKING, Any, NamedTuple

from ..history.config import DEFAULT_HISTORY_CONFIG

if TYPE_CHECKING:
    from ..history.feed import HistoryFeed


class _Entry(NamedTuple):
    value: Any
    expires_at: float


# Historical aggregates keyed by (feed, user, time bucket)
_entries: dict[str, _Entry] = {}
_stats: Counter[str] = Counter()


def _digest(key: dict[str, Any]) -> str:
    encoded = json.dumps(key, sort_keys=True, default=str).encode()
    return hashlib.sha256(encoded).hexdigest()[:16]


def _evict_expired(now: float) -> None:
    for digest in [d for d, entry in _entries.items() if entry.expires_at <= now]:
        del _entries[digest]


def history_cache_key(
    feed: HistoryFeed,
    user_id: str | None,
    now_ts: float,
    ttl: int = DEFAULT_HISTORY_CONFIG.cache_ttl_seconds,
) -> dict[str, Any]:
    """Same feed, same user and same ``ttl``-sized time bucket share an aggregate."""
    return {
        "feed": feed.cache_id,
        "user_id": user_id,
        "bucket": int(now_ts // max(ttl, 1)),
    }


def cache_get(key: dict[str, Any]) -> Any | None:
    entry = _entries.get(_digest(key))
    if entry is None or entry.expires_at <= time.time():
        _stats["misses"] += 1
        return None
    _stats["hits"] += 1
    return entry.value


def cache_set(
    key: dict[str, Any],
    value: Any,
    ttl: int = DEFAULT_HISTORY_CONFIG.cache_ttl_seconds,
) -> None:
    now = time.time()
    _evict_expired(now)
    _entries[_digest(key)] = _Entry(value, now + ttl)


def get_cache_stats() -> dict[str, Any]:
    _evict_expired(time.time())
    lookups = _stats["hits"] + _stats["misses"]
    return {
        "size": len(_entries),
        "hits": _stats["hits"],
        "misses": _stats["misses"],
        "hit_rate": round(_stats["hits"] / lookups * 100, 1) if lookups else 0.0,
    }


def clear_cache() -> None:
    _entries.clear()
    _stats.clear()
