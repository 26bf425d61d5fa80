from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from ..analytics.store import EventStore
from .cache import GeoCellCache
from .config import DEFAULT_AGGREGATOR_CONFIG, AggregatorConfig, VenueSearchStrategy
from .dedup import merge_venue_lists
from .models import AggregationResult, VenueQuery, VenueRecord
from .providers import BaseVenueProvider
from .store import VenueStore

logger = logging.getLogger(__name__)


class VenueAggregator:
    """Collects candidate venues from the cache, the place providers and,
    as a last resort, the venue catalog."""

    def __init__(
        self,
        venue_store: VenueStore,
        primary: BaseVenueProvider | None = None,
        secondary: BaseVenueProvider | None = None,
        cache: GeoCellCache | None = None,
        events: EventStore | None = None,
        config: AggregatorConfig = DEFAULT_AGGREGATOR_CONFIG,
    ) -> None:
        self.venue_store = venue_store
        self.primary = primary if config.use_primary else None
        self.secondary = secondary if config.use_secondary else None
        self.cache = cache or GeoCellCache(config=config)
        self.events = events or EventStore()
        self.config = config

    def search(self, query: VenueQuery) -> AggregationResult:
        if query.has_location:
            cached = self.cache.get_venues(query)
            if cached is not None:
                self.events.record_api_call("venue_cache", endpoint="geo_cell", cache_hit=True, response_time_ms=0.0)
                return AggregationResult(venues=cached, sources=["cache"], cache_hit=True)

            venues, sources = self._fetch_from_providers(query)
            if venues:
                venues = venues[: self.config.max_total_venues]
                self._persist_new_venues(venues)
                self.cache.set_venues(query, venues)
                return AggregationResult(venues=venues, sources=sources)
            logger.warning("No provider returned venues, falling back to catalog")
        else:
            logger.info("No location known, using catalog only")

        return self._catalog_fallback(query)

    # ── Provider calls ──────────────────────────────────────────────────

    def _fetch_from_providers(self, query: VenueQuery) -> tuple[list[VenueRecord], list[str]]:
        providers = [p for p in (self.primary, self.secondary) if p is not None]
        if not providers:
            return [], []

        deadline = time.monotonic() + self.config.request_timeout
        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="venue-provider")
        try:
            strategy = self.config.strategy
            if strategy == VenueSearchStrategy.parallel:
                pending = [(p, self._submit(pool, p, query)) for p in providers]
                lists = [(p, self._collect(p, call, deadline)) for p, call in pending]
            elif strategy == VenueSearchStrategy.primary_first:
                lists = self._sequential(pool, query, self.primary, self.secondary, deadline)
            else:
                lists = self._sequential(pool, query, self.secondary, self.primary, deadline)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        merged: list[VenueRecord] = []
        sources: list[str] = []
        for provider, venues in lists:
            if provider is None or not venues:
                continue
            sources.append(provider.name)
            merged = merge_venue_lists(merged, venues, self.config) if merged else list(venues)
        logger.info("Aggregated %d venues from %s", len(merged), sources or "no providers")
        return merged, sources

    def _sequential(
        self,
        pool: ThreadPoolExecutor,
        query: VenueQuery,
        first: BaseVenueProvider | None,
        second: BaseVenueProvider | None,
        deadline: float,
    ) -> list[tuple[BaseVenueProvider | None, list[VenueRecord]]]:
        first_venues = self._collect(first, self._submit(pool, first, query), deadline) if first else []
        if len(first_venues) >= self.config.min_venues_for_success or second is None:
            return [(first, first_venues)]
        logger.info("Only %d venues from first provider, querying second", len(first_venues))
        second_venues = self._collect(second, self._submit(pool, second, query), deadline)
        return [(first, first_venues), (second, second_venues)]

    def _submit(
        self,
        pool: ThreadPoolExecutor,
        provider: BaseVenueProvider,
        query: VenueQuery,
    ) -> tuple[Future, float]:
        hints = list(query.cuisines) + list(query.vibes)
        radius_m = int(query.radius_km * 1000)
        started = time.monotonic()
        return pool.submit(provider.search, query.latitude, query.longitude, radius_m, hints), started

    def _collect(
        self,
        provider: BaseVenueProvider,
        call: tuple[Future, float],
        deadline: float,
    ) -> list[VenueRecord]:
        future, started = call
        timeout = max(0.0, min(self.config.provider_timeout, deadline - time.monotonic()))
        status = "ok"
        venues: list[VenueRecord] = []
        try:
            venues = future.result(timeout=timeout)
        except FutureTimeoutError:
            status = "timeout"
            future.cancel()
            logger.warning("%s search timed out after %.1fs", provider.name, timeout)
        except Exception:
            status = "error"
            logger.warning("%s search failed, treating as empty", provider.name, exc_info=True)

        elapsed_ms = round((time.monotonic() - started) * 1000, 1)
        self.events.record_api_call(
            provider.api_name,
            endpoint="search",
            response_time_ms=elapsed_ms,
            status=status,
        )
        return venues

    # ── Catalog ─────────────────────────────────────────────────────────

    def _persist_new_venues(self, venues: list[VenueRecord]) -> None:
        saved = 0
        for venue in venues:
            try:
                if self.venue_store.get_venue(venue.id) is None:
                    self.venue_store.upsert_venue(venue)
                    saved += 1
            except Exception:
                logger.warning("Failed to save venue %s to catalog", venue.name, exc_info=True)
        if saved:
            logger.info("Saved %d new venues to catalog", saved)

    def _catalog_fallback(self, query: VenueQuery) -> AggregationResult:
        if query.has_location:
            try:
                nearby = self.venue_store.query_by_radius(query.latitude, query.longitude, query.radius_km)
            except Exception:
                logger.warning("Catalog radius query failed", exc_info=True)
                nearby = []
            wanted = {c.lower() for c in query.cuisines}
            if wanted:
                nearby = [v for v in nearby if (v.cuisine_type or "").lower() in wanted]
            if nearby:
                return AggregationResult(
                    venues=nearby[: self.config.max_total_venues],
                    sources=["catalog"],
                    fallback="catalog_radius",
                )

        if self.config.catalog_sample_fallback:
            try:
                sample = self.venue_store.get_active_venues(self.config.catalog_sample_size)
            except Exception:
                logger.warning("Catalog sample query failed", exc_info=True)
                sample = []
            if sample:
                return AggregationResult(venues=sample, sources=["catalog"], fallback="catalog_sample")

        logger.warning("No venues available from any source")
        return AggregationResult(venues=[], sources=[], fallback="empty")
