from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Query

from .analytics.aggregator import compute_recommendation_analytics, compute_usage_summary
from .analytics.store import EventStore
from .learning.models import FeedbackRequest, FeedbackResponse
from .learning.store import InMemoryFeedbackLog, InMemoryLearnedWeightStore
from .learning.weights import WeightLearner, WeightUpdateConflict
from .preferences.store import InMemoryPreferenceStore
from .recommendations.models import RecommendationRequest, RecommendationResponse
from .recommendations.retrieval import Recommender
from .scoring.engine import AIScoreEngine
from .scoring.models import AIScoreResult
from .scoring.store import InMemoryAIScoreStore
from .venues.aggregator import VenueAggregator
from .venues.cache import GeoCellCache
from .venues.providers import FoursquareProvider, GooglePlacesProvider
from .venues.store import InMemoryVenueStore, VenueStore, load_catalog_csv

logger = logging.getLogger(__name__)


@dataclass
class Services:
    recommender: Recommender
    engine: AIScoreEngine
    learner: WeightLearner
    venue_store: VenueStore
    cache: GeoCellCache
    events: EventStore = field(default_factory=EventStore)


def build_services() -> Services:
    catalog_path = os.getenv("VENUE_CATALOG_CSV")
    if catalog_path and Path(catalog_path).exists():
        venue_store = load_catalog_csv(Path(catalog_path))
        logger.info("Loaded %d catalog venues from %s", len(venue_store), catalog_path)
    else:
        venue_store = InMemoryVenueStore()

    events = EventStore()
    preference_store = InMemoryPreferenceStore()
    weight_store = InMemoryLearnedWeightStore()
    cache = GeoCellCache()

    aggregator = VenueAggregator(
        venue_store,
        primary=GooglePlacesProvider(),
        secondary=FoursquareProvider(),
        cache=cache,
        events=events,
    )
    engine = AIScoreEngine(preference_store, weight_store, venue_store, InMemoryAIScoreStore())
    return Services(
        recommender=Recommender(aggregator, engine, preference_store, events=events),
        engine=engine,
        learner=WeightLearner(weight_store, InMemoryFeedbackLog()),
        venue_store=venue_store,
        cache=cache,
        events=events,
    )


_services: Services | None = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services()
    return _services


app = FastAPI(title="Date Venue Recommendation API", version="1.0.0")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/recommendations", response_model=RecommendationResponse)
def recommendations(
    body: RecommendationRequest,
    services: Services = Depends(get_services),
) -> RecommendationResponse:
    return services.recommender.get_recommendations(body)


@app.post("/feedback", response_model=FeedbackResponse)
def feedback(
    body: FeedbackRequest,
    services: Services = Depends(get_services),
) -> FeedbackResponse:
    try:
        return services.learner.apply_feedback(body)
    except WeightUpdateConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@app.get("/venues/{venue_id}/score", response_model=AIScoreResult)
def venue_score(
    venue_id: str,
    user_id: str = Query(..., min_length=1),
    services: Services = Depends(get_services),
) -> AIScoreResult:
    if services.venue_store.get_venue(venue_id) is None:
        raise HTTPException(status_code=404, detail="Venue not found")
    return services.engine.score(venue_id, user_id)


@app.get("/cache/stats")
def cache_stats(services: Services = Depends(get_services)) -> dict:
    return services.cache.stats()


@app.get("/usage/stats")
def usage_stats(services: Services = Depends(get_services)) -> dict:
    events = services.events.get_events()
    return {
        "api_usage": compute_usage_summary(events),
        "recommendations": compute_recommendation_analytics(events),
    }
