from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any


def compute_usage_summary(events: list[dict[str, Any]]) -> dict[str, Any]:
    calls = [e for e in events if e["type"] == "api_call"]
    total = len(calls)

    per_api: dict[str, dict[str, Any]] = defaultdict(
        lambda: {"calls": 0, "errors": 0, "estimated_cost": 0.0, "cache_hits": 0}
    )
    for call in calls:
        entry = per_api[call["api_name"]]
        entry["calls"] += 1
        entry["estimated_cost"] = round(entry["estimated_cost"] + call.get("estimated_cost", 0.0), 6)
        if call.get("cache_hit"):
            entry["cache_hits"] += 1
        if call.get("status") != "ok":
            entry["errors"] += 1

    times = [c["response_time_ms"] for c in calls if c.get("response_time_ms") is not None]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    cache_hits = sum(1 for c in calls if c.get("cache_hit"))
    total_cost = round(sum(c.get("estimated_cost", 0.0) for c in calls), 6)

    return {
        "total_calls": total,
        "total_estimated_cost": total_cost,
        "avg_response_time_ms": avg_time,
        "cache_hit_rate": round(cache_hits / total * 100, 1) if total else 0.0,
        "by_api": dict(per_api),
    }


def compute_recommendation_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "recommendation"]
    total = len(searches)

    times = [s["response_time_ms"] for s in searches if "response_time_ms" in s]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    mode_counter: Counter[str] = Counter(s.get("mode", "solo") for s in searches)
    fallback_counter: Counter[str] = Counter(s["fallback"] for s in searches if s.get("fallback"))

    return {
        "total_requests": total,
        "avg_response_time_ms": avg_time,
        "modes": dict(mode_counter),
        "fallbacks": dict(fallback_counter),
        "empty_results": sum(1 for s in searches if s.get("results_returned", 0) == 0),
    }
