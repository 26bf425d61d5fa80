"""
AI venue scoring.

A venue starts from a base fraction of 0.60 and collects weighted terms for
cuisine, price, vibe, rating and the current time of day/season. Learned
weights scale each term and the user's learning history adds a confidence
boost. The fraction is scaled to 0-100 and clamped to [35, 98].
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from ..learning.models import LearnedWeights
from ..learning.store import LearnedWeightStore
from ..learning.weights import apply_weight, get_confidence_boost, get_learned_weights
from ..preferences.models import PreferenceProfile
from ..preferences.store import PreferenceStore
from ..venues.models import VenueRecord
from ..venues.store import VenueStore
from .models import AIScoreResult, AIVenueScore, MatchFactors
from .store import AIScoreStore

logger = logging.getLogger(__name__)

BASE_SCORE = 0.60
CUISINE_MATCH_BONUS = 0.25
CUISINE_MISMATCH_PENALTY = 0.05
PRICE_MATCH_BONUS = 0.15
VIBE_MATCH_BONUS = 0.10
RATING_PIVOT = 3.0
RATING_STEP = 0.05
MAX_RATING_BONUS = 0.10

DINNER_HOURS = range(18, 22)
LUNCH_HOURS = range(11, 15)
DINNER_BONUS = 0.10
LUNCH_BONUS = 0.05
WINTER_MONTHS = {11, 12, 1, 2}
WINTER_BONUS = 0.05

MIN_AI_SCORE = 35.0
MAX_AI_SCORE = 98.0
MAX_CONFIDENCE = 0.95
NEUTRAL_SCORE = 50.0
HIGH_RATING = 4.0


class VibeInference(ABC):
    """Guesses a vibe match when a venue's tags match none of the user's vibes."""

    @abstractmethod
    def infer(self, venue: VenueRecord, prefs: PreferenceProfile) -> list[str]:
        raise NotImplementedError


class PriceTierVibeInference(VibeInference):
    """Upscale or fine-dining venues read as romantic, cheap ones as casual."""

    ROMANTIC_CUISINE_HINTS = ("fine", "italian", "french")

    def infer(self, venue: VenueRecord, prefs: PreferenceProfile) -> list[str]:
        wanted = {v.strip().lower() for v in prefs.preferred_vibes}
        cuisine = (venue.cuisine_type or "").lower()

        upscale = venue.price_range in ("$$$", "$$$$") or any(
            hint in cuisine for hint in self.ROMANTIC_CUISINE_HINTS
        )
        if upscale and "romantic" in wanted:
            return ["romantic"]
        if venue.price_range in ("$", "$$") and "casual" in wanted:
            return ["casual"]
        return []


class NoVibeInference(VibeInference):
    def infer(self, venue: VenueRecord, prefs: PreferenceProfile) -> list[str]:
        return []


@dataclass(frozen=True)
class ScoringContext:
    user_id: str
    preferences: PreferenceProfile | None
    learned: LearnedWeights


def calculate_contextual_factors(now: datetime) -> float:
    bonus = 0.0
    if now.hour in DINNER_HOURS:
        bonus += DINNER_BONUS
    elif now.hour in LUNCH_HOURS:
        bonus += LUNCH_BONUS
    if now.month in WINTER_MONTHS:
        bonus += WINTER_BONUS
    return bonus


def calculate_confidence_level(ai_score: float, match_factors: MatchFactors) -> float:
    confidence = ai_score / 100 + match_factors.truthy_count() * 0.1
    return max(0.0, min(MAX_CONFIDENCE, confidence))


def generate_reasoning(venue: VenueRecord, match_factors: MatchFactors, ai_score: float) -> str:
    reasons: list[str] = []
    if match_factors.cuisine_match:
        reasons.append(f"Perfect cuisine match with {venue.cuisine_type}")
    if match_factors.price_match:
        reasons.append(f"Fits your budget preference ({venue.price_range})")
    if match_factors.vibe_matches:
        reasons.append(f"Matches your preferred vibes: {', '.join(match_factors.vibe_matches)}")
    if venue.rating is not None and venue.rating >= HIGH_RATING:
        reasons.append(f"Highly rated venue ({venue.rating}★)")

    if not reasons:
        return f"Good overall match based on your preferences ({round(ai_score)}% match)"
    return ". ".join(reasons) + "."


def _cuisine_matches(cuisine: str, preferred: list[str]) -> bool:
    cuisine = cuisine.strip().lower()
    for pref in preferred:
        pref = pref.strip().lower()
        if pref and (pref == cuisine or pref in cuisine or cuisine in pref):
            return True
    return False


def _vibe_matches(tags: list[str], preferred: list[str]) -> list[str]:
    lowered_tags = [t.strip().lower() for t in tags if t]
    matches: list[str] = []
    for vibe in preferred:
        wanted = vibe.strip().lower()
        if wanted and any(wanted in tag or tag in wanted for tag in lowered_tags):
            matches.append(vibe)
    return matches


def neutral_result() -> AIScoreResult:
    factors = MatchFactors()
    return AIScoreResult(
        ai_score=NEUTRAL_SCORE,
        match_factors=factors,
        reasoning=f"Good overall match based on your preferences ({round(NEUTRAL_SCORE)}% match)",
        confidence_level=calculate_confidence_level(NEUTRAL_SCORE, factors),
    )


class AIScoreEngine:
    def __init__(
        self,
        preference_store: PreferenceStore,
        weight_store: LearnedWeightStore,
        venue_store: VenueStore,
        score_store: AIScoreStore | None = None,
        vibe_inference: VibeInference | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.preference_store = preference_store
        self.weight_store = weight_store
        self.venue_store = venue_store
        self.score_store = score_store
        self.vibe_inference = vibe_inference or PriceTierVibeInference()
        self.clock = clock

    def load_context(self, user_id: str) -> ScoringContext:
        """Read preferences and learned weights for ``user_id`` concurrently."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            prefs_future = pool.submit(self.preference_store.get_preferences, user_id)
            weights_future = pool.submit(get_learned_weights, self.weight_store, user_id)
            learned = weights_future.result()
            preferences = prefs_future.result()
        return ScoringContext(user_id=user_id, preferences=preferences, learned=learned)

    def score(self, venue_id: str, user_id: str) -> AIScoreResult:
        try:
            venue = self.venue_store.get_venue(venue_id)
        except Exception:
            logger.warning("Failed to read venue %s, returning neutral score", venue_id, exc_info=True)
            return neutral_result()

        if venue is None:
            logger.info("Venue %s not found, returning neutral score", venue_id)
            return neutral_result()
        return self.score_venue(venue, user_id)

    def score_venue(self, venue: VenueRecord, user_id: str) -> AIScoreResult:
        try:
            context = self.load_context(user_id)
        except Exception:
            logger.warning("Failed to load scoring context for %s", user_id, exc_info=True)
            return neutral_result()
        return self.score_with_context(venue, context)

    def score_with_context(self, venue: VenueRecord, context: ScoringContext) -> AIScoreResult:
        prefs = context.preferences
        if prefs is None:
            logger.info("No preferences for %s, returning neutral score", context.user_id)
            return neutral_result()

        weights = context.learned.weights
        fraction = BASE_SCORE
        factors = MatchFactors()

        if prefs.preferred_cuisines and venue.cuisine_type:
            if _cuisine_matches(venue.cuisine_type, prefs.preferred_cuisines):
                factors.cuisine_match = True
                fraction += apply_weight(CUISINE_MATCH_BONUS, weights.cuisine, "cuisine")
            else:
                fraction -= apply_weight(CUISINE_MISMATCH_PENALTY, weights.cuisine, "cuisine")

        if venue.price_range and venue.price_range in prefs.preferred_price_ranges:
            factors.price_match = True
            fraction += apply_weight(PRICE_MATCH_BONUS, weights.price, "price")

        factors.vibe_matches = _vibe_matches(venue.tags, prefs.preferred_vibes)
        vibe_count = len(factors.vibe_matches)
        if vibe_count == 0:
            inferred = self.vibe_inference.infer(venue, prefs)
            if inferred:
                logger.debug("Inferred vibe %s for %s", inferred[0], venue.name)
                vibe_count = 1
        fraction += apply_weight(vibe_count * VIBE_MATCH_BONUS, weights.vibe, "vibe")

        if venue.rating:
            factors.rating_bonus = min((venue.rating - RATING_PIVOT) * RATING_STEP, MAX_RATING_BONUS)
            fraction += apply_weight(factors.rating_bonus, weights.rating, "rating")

        contextual = apply_weight(calculate_contextual_factors(self.clock()), weights.time, "time")
        fraction += contextual
        fraction += get_confidence_boost(context.learned)

        ai_score = round(max(MIN_AI_SCORE, min(MAX_AI_SCORE, fraction * 100)), 2)
        result = AIScoreResult(
            ai_score=ai_score,
            match_factors=factors,
            contextual_score=round(contextual, 2),
            reasoning=generate_reasoning(venue, factors, ai_score),
            confidence_level=calculate_confidence_level(ai_score, factors),
        )
        self._persist(venue, context.user_id, result)
        return result

    def _persist(self, venue: VenueRecord, user_id: str, result: AIScoreResult) -> None:
        if self.score_store is None:
            return
        try:
            self.score_store.upsert_score(AIVenueScore(
                venue_id=venue.id,
                user_id=user_id,
                ai_score=result.ai_score,
                match_factors=result.match_factors,
                contextual_score=result.contextual_score,
            ))
        except Exception:
            logger.warning("Failed to store AI score for venue %s", venue.id, exc_info=True)
