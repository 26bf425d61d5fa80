from __future__ import annotations

from datetime import datetime
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from datematch.analytics.store import EventStore
from datematch.app import Services, app, get_services
from datematch.learning.store import InMemoryFeedbackLog, InMemoryLearnedWeightStore
from datematch.learning.weights import WeightLearner, WeightUpdateConflict
from datematch.llm.config import LLMConfig
from datematch.preferences.models import PreferenceProfile
from datematch.preferences.store import InMemoryPreferenceStore
from datematch.recommendations.retrieval import Recommender
from datematch.scoring.engine import AIScoreEngine
from datematch.scoring.store import InMemoryAIScoreStore
from datematch.venues.aggregator import VenueAggregator
from datematch.venues.cache import GeoCellCache
from datematch.venues.config import AggregatorConfig
from datematch.venues.models import VenueRecord
from datematch.venues.store import InMemoryVenueStore

client = TestClient(app)

ALEX = PreferenceProfile(
    user_id="alex",
    preferred_cuisines=["Italian"],
    preferred_price_ranges=["$$"],
    preferred_vibes=["romantic"],
)
ROMA = VenueRecord(
    id="roma", name="Trattoria Roma", address="Lange Reihe 5, St. Georg, Hamburg",
    latitude=53.5511, longitude=9.9937, cuisine_type="Italian", price_range="$$",
    tags=["romantic"], rating=4.5,
)


def _clock() -> datetime:
    return datetime(2026, 6, 15, 9, 0)


def _services() -> Services:
    venue_store = InMemoryVenueStore([ROMA])
    preference_store = InMemoryPreferenceStore([ALEX])
    weight_store = InMemoryLearnedWeightStore()
    events = EventStore()
    config = AggregatorConfig(use_primary=False, use_secondary=False)
    cache = GeoCellCache(config=config)
    aggregator = VenueAggregator(venue_store, cache=cache, events=events, config=config)
    engine = AIScoreEngine(preference_store, weight_store, venue_store, InMemoryAIScoreStore(), clock=_clock)
    return Services(
        recommender=Recommender(
            aggregator, engine, preference_store, events=events,
            llm_config=LLMConfig(api_key="", enabled=False), clock=_clock,
        ),
        engine=engine,
        learner=WeightLearner(weight_store, InMemoryFeedbackLog()),
        venue_store=venue_store,
        cache=cache,
        events=events,
    )


@pytest.fixture(autouse=True)
def services():
    current = _services()
    app.dependency_overrides[get_services] = lambda: current
    yield current
    app.dependency_overrides.clear()


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_recommendations_returns_results():
    resp = client.post("/recommendations", json={
        "user_id": "alex", "latitude": 53.5511, "longitude": 9.9937,
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_candidates"] == 1
    [item] = body["recommendations"]
    assert item["venue_id"] == "roma"
    assert item["ai_score"] == 98
    assert item["distance"] == "0m"
    assert item["neighborhood"] == "St. Georg"


def test_recommendations_validation_rejects_bad_limit():
    resp = client.post("/recommendations", json={"user_id": "alex", "limit": 0})
    assert resp.status_code == 422


def test_recommendations_validation_rejects_missing_user():
    resp = client.post("/recommendations", json={"latitude": 53.5, "longitude": 9.9})
    assert resp.status_code == 422


def test_feedback_updates_weights(services):
    resp = client.post("/feedback", json={
        "user_id": "alex",
        "venue_id": "roma",
        "predicted_score": 90,
        "predicted_factors": {"matching_cuisines": ["Italian"], "price_match": True},
        "actual_rating": 5,
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "recorded"
    assert body["total_ratings"] == 1
    assert body["ai_accuracy"] == 100.0
    assert body["prediction_error"] == 10.0
    assert body["improvement_percent"] == 0.5
    assert services.learner.get_weights("alex").weights.cuisine == pytest.approx(1.05)


def test_feedback_validation_rejects_out_of_range_rating():
    resp = client.post("/feedback", json={
        "user_id": "alex", "venue_id": "roma", "predicted_score": 90, "actual_rating": 6,
    })
    assert resp.status_code == 422


def test_feedback_validation_rejects_empty_venue():
    resp = client.post("/feedback", json={"user_id": "alex", "venue_id": "", "actual_rating": 4})
    assert resp.status_code == 422


def test_feedback_conflict_returns_409(services):
    with patch.object(services.learner, "apply_feedback", side_effect=WeightUpdateConflict("busy")):
        resp = client.post("/feedback", json={"user_id": "alex", "venue_id": "roma", "actual_rating": 4})
    assert resp.status_code == 409


def test_venue_score():
    resp = client.get("/venues/roma/score", params={"user_id": "alex"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ai_score"] == 98
    assert body["match_factors"]["cuisine_match"] is True
    assert body["confidence_level"] == 0.95


def test_venue_score_unknown_venue():
    resp = client.get("/venues/ghost/score", params={"user_id": "alex"})
    assert resp.status_code == 404


def test_venue_score_requires_user():
    resp = client.get("/venues/roma/score")
    assert resp.status_code == 422


def test_cache_stats():
    resp = client.get("/cache/stats")
    assert resp.status_code == 200
    assert resp.json() == {"size": 0, "hits": 0, "misses": 0, "hit_rate": 0.0}


def test_usage_stats_tracks_recommendations():
    client.post("/recommendations", json={"user_id": "alex", "latitude": 53.5511, "longitude": 9.9937})
    resp = client.get("/usage/stats")
    assert resp.status_code == 200
    body = resp.json()
    assert body["recommendations"]["total_requests"] == 1
    assert body["recommendations"]["modes"] == {"solo": 1}
    assert body["api_usage"]["total_calls"] == 0
