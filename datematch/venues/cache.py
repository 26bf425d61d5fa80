from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any

from .config import DEFAULT_AGGREGATOR_CONFIG, AggregatorConfig
from .models import VenueQuery, VenueRecord

logger = logging.getLogger(__name__)

_KEY_PREFIX = "venue_cache:"


class CacheBackend(ABC):
    """Key/value store with per-key expiry.

    The in-process implementation below serves tests and single-worker
    deployments; a shared cache (e.g. Redis) can implement the same methods.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def expire(self, key: str, ttl_seconds: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        raise NotImplementedError


class InMemoryCacheBackend(CacheBackend):
    def __init__(self, max_entries: int = 50, clock=time.time) -> None:
        self._entries: dict[str, dict[str, Any]] = {}
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()

    def _alive(self, entry: dict[str, Any]) -> bool:
        expires_at = entry["expires_at"]
        return expires_at is None or self._clock() < expires_at

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._alive(entry):
                del self._entries[key]
                return None
            return entry["value"]

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        now = self._clock()
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_entries:
                self._evict_oldest()
            self._entries[key] = {
                "value": value,
                "created_at": now,
                "expires_at": now + ttl_seconds if ttl_seconds is not None else None,
            }

    def expire(self, key: str, ttl_seconds: int) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                entry["expires_at"] = self._clock() + ttl_seconds

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return [k for k, e in self._entries.items() if k.startswith(prefix) and self._alive(e)]

    def _evict_oldest(self) -> None:
        # Caller holds the lock.
        expired = [k for k, e in self._entries.items() if not self._alive(e)]
        for key in expired:
            del self._entries[key]
        if len(self._entries) < self._max_entries:
            return
        oldest = min(self._entries, key=lambda k: self._entries[k]["created_at"])
        del self._entries[oldest]


class GeoCellCache:
    """Venue search results keyed by rounded coordinates and query filters."""

    def __init__(
        self,
        backend: CacheBackend | None = None,
        config: AggregatorConfig = DEFAULT_AGGREGATOR_CONFIG,
    ) -> None:
        self.backend = backend or InMemoryCacheBackend(max_entries=config.cache_max_entries)
        self.ttl_seconds = config.cache_ttl_seconds
        self.precision = config.cache_precision
        self.hits = 0
        self.misses = 0
        self._stats_lock = threading.Lock()

    def _cell(self, lat: float, lon: float) -> str:
        return f"{round(lat, self.precision)}_{round(lon, self.precision)}"

    def make_key(self, query: VenueQuery) -> str:
        cuisines = ",".join(sorted(c.lower() for c in query.cuisines))
        prices = ",".join(sorted(query.price_ranges))
        vibes = ",".join(sorted(v.lower() for v in query.vibes))
        cell = self._cell(query.latitude, query.longitude)
        return f"{_KEY_PREFIX}{cell}_{cuisines}_{prices}_{vibes}"

    def get_venues(self, query: VenueQuery) -> list[VenueRecord] | None:
        if not query.has_location:
            return None
        key = self.make_key(query)
        try:
            cached = self.backend.get(key)
        except Exception:
            logger.warning("Venue cache read failed for %s", key, exc_info=True)
            cached = None
        if cached is None:
            with self._stats_lock:
                self.misses += 1
            return None
        with self._stats_lock:
            self.hits += 1
        logger.info("Venue cache hit for %s", key)
        return [VenueRecord.model_validate(v) for v in cached]

    def set_venues(self, query: VenueQuery, venues: list[VenueRecord]) -> None:
        if not query.has_location:
            return
        key = self.make_key(query)
        try:
            self.backend.set(key, [v.model_dump() for v in venues], ttl_seconds=self.ttl_seconds)
        except Exception:
            logger.warning("Venue cache write failed for %s", key, exc_info=True)
            return
        logger.info("Cached %d venues for %s", len(venues), key)

    def invalidate_location(self, lat: float, lon: float) -> int:
        prefix = f"{_KEY_PREFIX}{self._cell(lat, lon)}_"
        removed = 0
        for key in self.backend.keys(prefix):
            self.backend.delete(key)
            removed += 1
        return removed

    def clear(self) -> None:
        for key in self.backend.keys(_KEY_PREFIX):
            self.backend.delete(key)
        with self._stats_lock:
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict:
        with self._stats_lock:
            hits, misses = self.hits, self.misses
        total = hits + misses
        return {
            "size": len(self.backend.keys(_KEY_PREFIX)),
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / total * 100, 1) if total > 0 else 0.0,
        }
