from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from datematch.learning.models import FeedbackRequest, LearnedWeights, WeightVector
from datematch.learning.store import (
    InMemoryFeedbackLog,
    InMemoryLearnedWeightStore,
    VersionConflictError,
)
from datematch.learning.weights import (
    WeightLearner,
    WeightUpdateConflict,
    get_confidence_boost,
    get_learned_weights,
)


def _learner(store=None):
    store = store or InMemoryLearnedWeightStore()
    return WeightLearner(store, InMemoryFeedbackLog()), store


def _feedback(rating, predicted=80.0, **extra) -> FeedbackRequest:
    return FeedbackRequest(
        user_id="alex", venue_id="v1", predicted_score=predicted, actual_rating=rating, **extra
    )


def test_missing_weights_use_defaults():
    learned = get_learned_weights(InMemoryLearnedWeightStore(), "nobody")
    assert learned.weights.cuisine == 1.0
    assert not learned.has_learning_data


def test_stored_weights_are_clamped_and_sanitised():
    store = InMemoryLearnedWeightStore()
    store.upsert_weights("alex", WeightVector(
        user_id="alex",
        feature_weights={"cuisine": 5.0, "vibe": 0.1, "price": "high", "rating": 1.3},
        total_ratings=4,
    ))

    learned = get_learned_weights(store, "alex")

    assert learned.weights.cuisine == 2.0
    assert learned.weights.vibe == 0.5
    assert learned.weights.price == 1.0
    assert learned.weights.time == 1.0
    assert learned.weights.rating == 1.3
    assert learned.has_learning_data


def test_store_errors_fall_back_to_defaults():
    store = MagicMock()
    store.get_weights.side_effect = RuntimeError("connection reset")

    learned = get_learned_weights(store, "alex")

    assert learned == LearnedWeights(user_id="alex")


@pytest.mark.parametrize(
    "accuracy,total,has_data,expected",
    [
        (95.0, 50, False, 0.0),
        (65.0, 5, True, 0.025),
        (85.0, 10, True, 0.075),
        (100.0, 100, True, 0.12),
    ],
)
def test_confidence_boost(accuracy, total, has_data, expected):
    learned = LearnedWeights(
        user_id="alex", ai_accuracy=accuracy, total_ratings=total, has_learning_data=has_data
    )
    assert get_confidence_boost(learned) == pytest.approx(expected)


def test_success_feedback_raises_cuisine_and_vibe():
    learner, store = _learner()

    response = learner.apply_feedback(_feedback(5, predicted=90.0))

    weights = learner.get_weights("alex").weights
    assert weights.cuisine == pytest.approx(1.05)
    assert weights.vibe == pytest.approx(1.05)
    assert weights.price == 1.0
    assert response.total_ratings == 1
    assert response.prediction_error == 10.0
    assert response.ai_accuracy == 100.0
    assert response.improvement_percent == 0.5


def test_failure_feedback_lowers_cuisine_and_vibe():
    learner, _ = _learner()

    response = learner.apply_feedback(_feedback(1, predicted=90.0))

    weights = learner.get_weights("alex").weights
    assert weights.cuisine == pytest.approx(0.95)
    assert weights.vibe == pytest.approx(0.95)
    assert response.prediction_error == 70.0
    assert response.ai_accuracy == 0.0


def test_neutral_feedback_leaves_weights_unchanged():
    learner, _ = _learner()

    learner.apply_feedback(_feedback(3, predicted=60.0))

    learned = learner.get_weights("alex")
    assert learned.weights.cuisine == 1.0
    assert learned.weights.vibe == 1.0
    assert learned.total_ratings == 1
    assert learned.ai_accuracy == 100.0


def test_weights_respect_bounds_after_many_events():
    learner, _ = _learner()
    for _ in range(30):
        learner.apply_feedback(_feedback(5))
    assert learner.get_weights("alex").weights.cuisine == 2.0

    for _ in range(60):
        learner.apply_feedback(_feedback(1))
    learned = learner.get_weights("alex")
    assert learned.weights.vibe == 0.5
    assert learned.total_ratings == 90


def test_improvement_percent_is_capped():
    learner, _ = _learner()
    for _ in range(12):
        response = learner.apply_feedback(_feedback(4))
    assert response.improvement_percent == 5.0


def test_feedback_record_captures_factors():
    learner, _ = _learner()
    factors = {"matching_cuisines": ["Italian"], "matching_vibes": ["romantic"], "price_match": True}

    learner.apply_feedback(_feedback(5, predicted_factors=factors))
    learner.apply_feedback(_feedback(2, predicted_factors=factors))

    success, failure = learner.feedback_log.list_for_user("alex")
    assert success.success_factors == ["Italian", "romantic", "price_match"]
    assert success.failure_factors == []
    assert failure.failure_factors == ["Italian", "romantic"]


def test_failure_records_price_mismatch():
    learner, _ = _learner()

    learner.apply_feedback(_feedback(1, predicted_factors={"cuisine_match": True, "price_match": False}))

    [record] = learner.feedback_log.list_for_user("alex")
    assert record.failure_factors == ["cuisine_match", "price_mismatch"]


def test_version_conflict_is_retried():
    store = InMemoryLearnedWeightStore()
    original = store.upsert_weights
    calls = {"n": 0}

    def flaky_upsert(user_id, vector, expected_version=None):
        calls["n"] += 1
        if calls["n"] == 1:
            # A concurrent writer lands first.
            original(user_id, WeightVector(user_id=user_id, total_ratings=1, successful_predictions=1))
        return original(user_id, vector, expected_version=expected_version)

    store.upsert_weights = flaky_upsert
    learner, _ = _learner(store)

    response = learner.apply_feedback(_feedback(5, predicted=90.0))

    assert calls["n"] == 2
    assert response.total_ratings == 2


def test_persistent_conflict_raises():
    store = InMemoryLearnedWeightStore()
    store.upsert_weights = MagicMock(side_effect=VersionConflictError("busy"))
    learner, _ = _learner(store)

    with pytest.raises(WeightUpdateConflict):
        learner.apply_feedback(_feedback(5))
    assert store.upsert_weights.call_count == 3


def test_store_rejects_stale_version():
    store = InMemoryLearnedWeightStore()
    store.upsert_weights("alex", WeightVector(user_id="alex"))

    with pytest.raises(VersionConflictError):
        store.upsert_weights("alex", WeightVector(user_id="alex"), expected_version=0)


def test_weight_save_failure_still_returns_computed_response():
    store = InMemoryLearnedWeightStore()
    store.upsert_weights = MagicMock(side_effect=RuntimeError("db down"))
    learner, _ = _learner(store)

    response = learner.apply_feedback(_feedback(5, predicted=90.0))

    assert store.upsert_weights.call_count == 1
    assert response.total_ratings == 1
    assert response.ai_accuracy == 100.0
    assert response.prediction_error == 10.0
    assert [r.venue_id for r in learner.feedback_log.list_for_user("alex")] == ["v1"]


def test_weight_read_failure_learns_from_defaults():
    store = InMemoryLearnedWeightStore()
    store.get_weights = MagicMock(side_effect=RuntimeError("db down"))
    learner, _ = _learner(store)

    response = learner.apply_feedback(_feedback(5, predicted=90.0))

    assert response.total_ratings == 1
    assert response.improvement_percent == 0.5
    saved = store._vectors["alex"]
    assert saved.feature_weights["cuisine"] == pytest.approx(1.05)
    assert saved.version == 1


def test_feedback_log_failure_does_not_block_learning():
    log = MagicMock()
    log.append.side_effect = RuntimeError("disk full")
    store = InMemoryLearnedWeightStore()
    learner = WeightLearner(store, log)

    response = learner.apply_feedback(_feedback(4))

    assert response.total_ratings == 1
    assert learner.get_weights("alex").total_ratings == 1
