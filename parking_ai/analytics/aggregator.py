from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    calls = [e for e in events if e["type"] == "recommendation"]
    total = len(calls)

    # Average response time
    times = [c["response_time_ms"] for c in calls if "response_time_ms" in c]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Mode usage
    mode_counter: Counter[str] = Counter(c.get("mode", "unknown") for c in calls)

    # History outcome; skipped calls never asked for history
    history_counter: Counter[str] = Counter(c.get("history_status", "skipped") for c in calls)
    attempted = history_counter["ok"] + history_counter["failed"]

    # Labels and demand levels served
    label_counter: Counter[str] = Counter()
    demand_counter: Counter[str] = Counter()
    for c in calls:
        for label in c.get("labels", []) or []:
            label_counter[label] += 1
        for level in c.get("demand_levels", []) or []:
            demand_counter[level] += 1

    empty_results = sum(1 for c in calls if c.get("results_returned", 0) == 0)
    candidates = [c.get("total_candidates", 0) for c in calls]

    return {
        "total_requests": total,
        "avg_response_time_ms": avg_time,
        "mode_usage": dict(mode_counter),
        "avg_candidates": round(sum(candidates) / total, 1) if total else 0.0,
        "empty_result_rate": round(empty_results / total * 100, 1) if total else 0.0,
        "history": {
            "ok": history_counter["ok"],
            "failed": history_counter["failed"],
            "skipped": history_counter["skipped"],
            "fallback_rate": round(history_counter["failed"] / attempted * 100, 1) if attempted else 0.0,
        },
        "labels": [{"name": n, "count": c} for n, c in label_counter.most_common()],
        "demand_levels": dict(demand_counter),
    }
