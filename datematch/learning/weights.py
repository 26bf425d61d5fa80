"""
Learned scoring weights.

Every user has a multiplier per scoring feature (cuisine, vibe, price, time,
rating). Multipliers start at 1.0 and drift with feedback: a date rated 4 or
5 nudges the cuisine and vibe multipliers up by 5%, a date rated 1 or 2 nudges
them down by 5%, and a 3 leaves them alone. Multipliers always stay within
[0.5, 2.0].

Accuracy is the share of rated dates whose predicted score landed within 20
points of the (rating x 20) outcome. Once a user has rated at least one date,
accuracy above 70% and rating volume add a small confidence boost to every
AI score.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any

from .models import (
    FeatureWeights,
    FeedbackRecord,
    FeedbackRequest,
    FeedbackResponse,
    LearnedWeights,
    WeightVector,
)
from .store import FeedbackLog, LearnedWeightStore, VersionConflictError

logger = logging.getLogger(__name__)

MIN_WEIGHT = 0.5
MAX_WEIGHT = 2.0
SUCCESS_MULTIPLIER = 1.05
FAILURE_MULTIPLIER = 0.95
ADAPTED_FEATURES = ("cuisine", "vibe")

ACCURACY_THRESHOLD = 70.0
ACCURACY_BOOST_PER_POINT = 0.003
RATINGS_BOOST_PER_RATING = 0.005
MAX_RATINGS_BOOST = 0.03

ACCURATE_PREDICTION_ERROR = 20.0


class WeightUpdateConflict(RuntimeError):
    """Concurrent feedback kept changing the weights; the update was not saved."""


def clamp_weight(value: float) -> float:
    return max(MIN_WEIGHT, min(MAX_WEIGHT, value))


def _weight_value(stored: dict[str, Any] | None, key: str) -> float:
    if not stored:
        return 1.0
    value = stored.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        return 1.0
    return clamp_weight(float(value))


def learned_weights_from_vector(vector: WeightVector) -> LearnedWeights:
    weights = FeatureWeights(**{
        name: _weight_value(vector.feature_weights, name)
        for name in FeatureWeights.model_fields
    })
    total = vector.total_ratings or 0
    return LearnedWeights(
        user_id=vector.user_id,
        weights=weights,
        ai_accuracy=vector.ai_accuracy or 0.0,
        total_ratings=total,
        successful_predictions=vector.successful_predictions or 0,
        has_learning_data=total > 0,
        version=vector.version,
    )


def get_learned_weights(store: LearnedWeightStore, user_id: str) -> LearnedWeights:
    """Fetch a user's weights; any failure yields neutral defaults."""
    try:
        vector = store.get_weights(user_id)
    except Exception:
        logger.warning("Failed to fetch learned weights for %s, using defaults", user_id, exc_info=True)
        return LearnedWeights(user_id=user_id)

    if vector is None:
        logger.debug("No learned weights for %s, using defaults", user_id)
        return LearnedWeights(user_id=user_id)
    return learned_weights_from_vector(vector)


def get_confidence_boost(learned: LearnedWeights) -> float:
    if not learned.has_learning_data:
        return 0.0

    boost = max(0.0, learned.ai_accuracy - ACCURACY_THRESHOLD) * ACCURACY_BOOST_PER_POINT
    boost += min(learned.total_ratings * RATINGS_BOOST_PER_RATING, MAX_RATINGS_BOOST)
    return boost


def apply_weight(base_value: float, weight: float, label: str) -> float:
    weighted = base_value * weight
    if weight != 1.0:
        logger.debug("Applied %s weight %.2f: %.3f -> %.3f", label, weight, base_value, weighted)
    return weighted


def _extract_factors(predicted: dict[str, Any], success: bool) -> list[str]:
    factors: list[str] = []
    factors.extend(predicted.get("matching_cuisines") or [])
    if not predicted.get("matching_cuisines") and predicted.get("cuisine_match"):
        factors.append("cuisine_match")
    factors.extend(predicted.get("matching_vibes") or predicted.get("vibe_matches") or [])
    price_match = bool(predicted.get("price_match"))
    if success and price_match:
        factors.append("price_match")
    elif not success and not price_match:
        factors.append("price_mismatch")
    return factors


def adapt_weights(weights: FeatureWeights, actual_rating: int | None) -> FeatureWeights:
    if actual_rating is None or actual_rating == 3:
        return weights
    multiplier = SUCCESS_MULTIPLIER if actual_rating >= 4 else FAILURE_MULTIPLIER
    return weights.model_copy(update={
        name: clamp_weight(getattr(weights, name) * multiplier) for name in ADAPTED_FEATURES
    })


class WeightLearner:
    """Turns rated dates into weight updates."""

    def __init__(
        self,
        store: LearnedWeightStore,
        feedback_log: FeedbackLog,
        max_attempts: int = 3,
    ) -> None:
        self.store = store
        self.feedback_log = feedback_log
        self.max_attempts = max_attempts

    def get_weights(self, user_id: str) -> LearnedWeights:
        return get_learned_weights(self.store, user_id)

    def build_record(self, request: FeedbackRequest) -> FeedbackRecord:
        prediction_error = None
        if request.actual_rating is not None:
            normalized = request.actual_rating * 20
            prediction_error = abs(request.predicted_score - normalized)

        success_factors: list[str] = []
        failure_factors: list[str] = []
        if request.actual_rating is not None and request.predicted_factors:
            if request.actual_rating >= 4:
                success_factors = _extract_factors(request.predicted_factors, success=True)
            elif request.actual_rating < 3:
                failure_factors = _extract_factors(request.predicted_factors, success=False)

        return FeedbackRecord(
            user_id=request.user_id,
            partner_id=request.partner_id,
            venue_id=request.venue_id,
            invitation_id=request.invitation_id,
            predicted_score=request.predicted_score,
            predicted_factors=request.predicted_factors,
            actual_rating=request.actual_rating,
            venue_rating=request.venue_rating,
            would_recommend=request.would_recommend,
            prediction_error=prediction_error,
            success_factors=success_factors,
            failure_factors=failure_factors,
            context=request.context,
        )

    def _next_vector(self, current: WeightVector | None, record: FeedbackRecord) -> WeightVector:
        if current is None:
            learned = LearnedWeights(user_id=record.user_id)
        else:
            learned = learned_weights_from_vector(current)

        total = learned.total_ratings + 1
        accurate = record.prediction_error is not None and record.prediction_error < ACCURATE_PREDICTION_ERROR
        successful = learned.successful_predictions + (1 if accurate else 0)
        weights = adapt_weights(learned.weights, record.actual_rating)

        feature_weights = dict(current.feature_weights) if current else {}
        feature_weights.update(weights.model_dump())
        return WeightVector(
            user_id=record.user_id,
            feature_weights=feature_weights,
            ai_accuracy=successful / total * 100,
            total_ratings=total,
            successful_predictions=successful,
            version=current.version if current else 0,
            last_updated=datetime.now(),
        )

    def _current_vector(self, user_id: str) -> WeightVector | None:
        try:
            return self.store.get_weights(user_id)
        except Exception:
            logger.warning("Failed to read weights for %s, learning from defaults", user_id, exc_info=True)
            return None

    def apply_feedback(self, request: FeedbackRequest) -> FeedbackResponse:
        record = self.build_record(request)
        try:
            self.feedback_log.append(record)
        except Exception:
            logger.warning("Failed to log feedback for %s", request.user_id, exc_info=True)
        logger.info(
            "Learning from feedback: user=%s venue=%s predicted=%.1f rating=%s",
            request.user_id, request.venue_id, request.predicted_score, request.actual_rating,
        )

        for attempt in range(1, self.max_attempts + 1):
            current = self._current_vector(request.user_id)
            vector = self._next_vector(current, record)
            try:
                stored = self.store.upsert_weights(
                    request.user_id, vector, expected_version=current.version if current else 0,
                )
                break
            except VersionConflictError:
                logger.info("Weight update conflict for %s (attempt %d)", request.user_id, attempt)
            except Exception:
                logger.warning("Failed to save weights for %s", request.user_id, exc_info=True)
                stored = vector
                break
        else:
            raise WeightUpdateConflict(
                f"could not update weights for {request.user_id} after {self.max_attempts} attempts"
            )

        logger.info(
            "Learning complete for %s: total_ratings=%d accuracy=%.1f",
            request.user_id, stored.total_ratings, stored.ai_accuracy,
        )
        return FeedbackResponse(
            total_ratings=stored.total_ratings,
            ai_accuracy=round(stored.ai_accuracy, 1),
            prediction_error=round(record.prediction_error, 1) if record.prediction_error is not None else None,
            improvement_percent=round(min(5.0, stored.total_ratings * 0.5), 1),
        )
