from __future__ import annotations

import logging
import re
import time
from datetime import datetime
from typing import Callable

from ..analytics.store import EventStore
from ..learning.models import LearnedWeights
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import enhance_reasoning
from ..preferences.filtering import (
    filter_venues_by_collaborative_preferences,
    filter_venues_by_preferences,
)
from ..preferences.models import PreferenceProfile, ScoredVenue
from ..preferences.store import PreferenceStore
from ..scoring.engine import AIScoreEngine, ScoringContext, neutral_result
from ..venues.aggregator import VenueAggregator
from ..venues.geo import extract_neighborhood
from ..venues.models import VenueQuery
from .config import DEFAULT_RECOMMENDER_CONFIG, RecommenderConfig
from .display import describe_distance, infer_open_now
from .models import RecommendationItem, RecommendationRequest, RecommendationResponse

logger = logging.getLogger(__name__)

_SLUG = re.compile(r"[^a-z0-9]+")


def _union(*lists: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for values in lists:
        for value in values:
            seen.setdefault(value, None)
    return list(seen)


def emergency_venue_id(name: str, now_ms: int) -> str | None:
    slug = _SLUG.sub("_", (name or "").lower()).strip("_")
    if not slug:
        return None
    return f"venue_{slug}_{now_ms}"


def ensure_venue_ids(items: list[RecommendationItem], now_ms: int) -> list[RecommendationItem]:
    """Give every item a usable id, dropping the ones that cannot get one."""
    valid: list[RecommendationItem] = []
    for item in items:
        if item.venue_id and item.venue_id.strip():
            valid.append(item)
            continue
        fallback_id = emergency_venue_id(item.name, now_ms)
        if fallback_id is None:
            logger.error("Dropping recommendation without id or name")
            continue
        logger.warning("Venue %r had no id, using emergency id %s", item.name, fallback_id)
        valid.append(item.model_copy(update={"venue_id": fallback_id}))
    return valid


class Recommender:
    def __init__(
        self,
        aggregator: VenueAggregator,
        engine: AIScoreEngine,
        preference_store: PreferenceStore,
        events: EventStore | None = None,
        config: RecommenderConfig = DEFAULT_RECOMMENDER_CONFIG,
        llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.aggregator = aggregator
        self.engine = engine
        self.preference_store = preference_store
        self.events = events or EventStore()
        self.config = config
        self.llm_config = llm_config
        self.clock = clock

    def _load_context(self, user_id: str) -> ScoringContext:
        try:
            return self.engine.load_context(user_id)
        except Exception:
            logger.warning("Failed to load preferences for %s", user_id, exc_info=True)
            return ScoringContext(user_id=user_id, preferences=None, learned=LearnedWeights(user_id=user_id))

    def _partner_preferences(self, partner_id: str | None) -> PreferenceProfile | None:
        if not partner_id:
            return None
        try:
            return self.preference_store.get_preferences(partner_id)
        except Exception:
            logger.warning("Failed to load preferences for partner %s", partner_id, exc_info=True)
            return None

    def _build_query(
        self,
        request: RecommendationRequest,
        user_prefs: PreferenceProfile | None,
        partner_prefs: PreferenceProfile | None,
    ) -> VenueQuery:
        profiles = [p for p in (user_prefs, partner_prefs) if p is not None]
        radius = request.radius_km or (user_prefs.max_distance_km if user_prefs else self.config.default_radius_km)
        return VenueQuery(
            latitude=request.latitude,
            longitude=request.longitude,
            radius_km=radius,
            cuisines=_union(*(p.preferred_cuisines for p in profiles)),
            vibes=_union(*(p.preferred_vibes for p in profiles)),
            price_ranges=_union(*(p.preferred_price_ranges for p in profiles)),
        )

    def _to_item(
        self,
        scored: ScoredVenue,
        context: ScoringContext,
        ref_lat: float,
        ref_lon: float,
        now: datetime,
    ) -> RecommendationItem:
        venue = scored.venue
        try:
            result = self.engine.score_with_context(venue, context)
        except Exception:
            logger.warning("Failed to score %s for %s", venue.id, context.user_id, exc_info=True)
            result = neutral_result()
        return RecommendationItem(
            venue_id=venue.id,
            name=venue.name,
            address=venue.address,
            cuisine_type=venue.cuisine_type,
            price_range=venue.price_range,
            rating=venue.rating,
            tags=venue.tags,
            photos=venue.photos,
            latitude=venue.latitude,
            longitude=venue.longitude,
            source=venue.source,
            ai_score=result.ai_score,
            confidence_level=result.confidence_level,
            reasoning=result.reasoning,
            match_factors=result.match_factors,
            contextual_score=result.contextual_score,
            preference_score=scored.preference_score,
            collaborative_score=scored.collaborative_score,
            distance=describe_distance(ref_lat, ref_lon, venue),
            is_open=infer_open_now(venue, now),
            neighborhood=extract_neighborhood(venue.address),
        )

    def _enhance(
        self,
        items: list[RecommendationItem],
        query: VenueQuery,
        has_partner: bool,
    ) -> list[RecommendationItem]:
        top = items[: self.config.llm_top_n]
        if not top or not self.llm_config.enabled:
            return items

        preferences = {
            "cuisines": query.cuisines,
            "vibes": query.vibes,
            "price_ranges": query.price_ranges,
            "partner": has_partner,
        }
        candidates = [
            {
                "id": item.venue_id,
                "name": item.name,
                "cuisine_type": item.cuisine_type,
                "price_range": item.price_range,
                "rating": item.rating,
                "tags": item.tags,
                "reasoning": item.reasoning,
            }
            for item in top
        ]
        started = time.time()
        reasons = enhance_reasoning(preferences, candidates, self.llm_config)
        self.events.record_api_call(
            "groq",
            endpoint="chat.completions",
            response_time_ms=round((time.time() - started) * 1000, 1),
            status="ok" if reasons else "fallback",
        )
        if not reasons:
            return items
        return [
            item.model_copy(update={"reasoning": reasons[item.venue_id]}) if item.venue_id in reasons else item
            for item in items
        ]

    def get_recommendations(self, request: RecommendationRequest) -> RecommendationResponse:
        start_time = time.time()
        now = self.clock()

        context = self._load_context(request.user_id)
        partner_prefs = self._partner_preferences(request.partner_id)
        collaborative = request.partner_id is not None
        mode = "collaborative" if collaborative else "solo"

        query = self._build_query(request, context.preferences, partner_prefs)
        found = self.aggregator.search(query)

        if collaborative:
            shortlist = filter_venues_by_collaborative_preferences(found.venues, context.preferences, partner_prefs)
        else:
            shortlist = filter_venues_by_preferences(found.venues, context.preferences)

        if query.has_location:
            ref_lat, ref_lon = query.latitude, query.longitude
        else:
            ref_lat, ref_lon = self.config.default_latitude, self.config.default_longitude

        items = [self._to_item(s, context, ref_lat, ref_lon, now) for s in shortlist]
        items.sort(key=lambda item: item.ai_score, reverse=True)
        items = items[: request.limit]
        items = ensure_venue_ids(items, int(now.timestamp() * 1000))
        items = self._enhance(items, query, collaborative)

        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        self.events.record_event("recommendation", {
            "user_id": request.user_id,
            "mode": mode,
            "total_candidates": len(found.venues),
            "shortlisted": len(shortlist),
            "results_returned": len(items),
            "sources": found.sources,
            "cache_hit": found.cache_hit,
            "fallback": found.fallback,
            "response_time_ms": elapsed_ms,
        })
        logger.info(
            "Recommendations for %s (%s): %d candidates -> %d results in %.1fms",
            request.user_id, mode, len(found.venues), len(items), elapsed_ms,
        )

        return RecommendationResponse(
            recommendations=items,
            total_candidates=len(found.venues),
            mode=mode,
            sources=found.sources,
            cache_hit=found.cache_hit,
            fallback=found.fallback,
        )
