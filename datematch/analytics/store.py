from __future__ import annotations

import threading
import time
from typing import Any

# Estimated cost per call in USD.
API_COSTS: dict[str, float] = {
    "google_places": 0.017,
    "foursquare": 0.0,
    "venue_cache": 0.0,
    "groq": 0.01,
}


class EventStore:
    def __init__(self) -> None:
        self._events: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def record_event(self, event_type: str, data: dict[str, Any]) -> None:
        with self._lock:
            self._events.append({
                "type": event_type,
                "timestamp": time.time(),
                **data,
            })

    def record_api_call(
        self,
        api_name: str,
        *,
        endpoint: str | None = None,
        cache_hit: bool = False,
        response_time_ms: float | None = None,
        status: str = "ok",
        estimated_cost: float | None = None,
    ) -> None:
        if estimated_cost is None:
            estimated_cost = 0.0 if cache_hit else API_COSTS.get(api_name, 0.0)
        self.record_event("api_call", {
            "api_name": api_name,
            "endpoint": endpoint,
            "cache_hit": cache_hit,
            "response_time_ms": response_time_ms,
            "status": status,
            "estimated_cost": estimated_cost,
        })

    def get_events(self, event_type: str | None = None) -> list[dict[str, Any]]:
        with self._lock:
            events = list(self._events)
        if event_type is None:
            return events
        return [e for e in events if e["type"] == event_type]

    def clear_events(self) -> None:
        with self._lock:
            self._events.clear()
