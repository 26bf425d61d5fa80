"""Preference-based shortlisting of candidate venues.

Solo scoring (out of 100):
- cuisine in the user's preferred cuisines: 40
- price range in the preferred ranges: 30
- any venue tag in the preferred vibes: 20
- dietary: 10 when the user has no restrictions, or the venue carries a
  recognised dietary tag

Collaborative scoring rewards what both people share more than what each
likes on their own:

    collaborative = (shared * 1.5 + (user + partner) * 0.5) / 2
"""
from __future__ import annotations

import logging

from ..venues.models import VenueRecord
from .models import CollaborativeScore, PreferenceProfile, ScoredVenue

logger = logging.getLogger(__name__)

CUISINE_POINTS = 40
PRICE_POINTS = 30
VIBE_POINTS = 20
DIETARY_POINTS = 10

SHARED_CUISINE_POINTS = 50
SHARED_PRICE_POINTS = 30
SHARED_VIBE_POINTS = 20

SOLO_MIN_SCORE = 25
SOLO_MIN_RESULTS = 10
COLLABORATIVE_MIN_SCORE = 20
COLLABORATIVE_MIN_RESULTS = 15

DIETARY_TAGS = {"vegetarian", "vegan", "gluten-free", "halal"}


def _lower_set(values: list[str]) -> set[str]:
    return {v.strip().lower() for v in values if v}


def _cuisine_match(venue: VenueRecord, prefs: PreferenceProfile) -> bool:
    return bool(venue.cuisine_type) and venue.cuisine_type.strip().lower() in _lower_set(prefs.preferred_cuisines)


def _price_match(venue: VenueRecord, prefs: PreferenceProfile) -> bool:
    return venue.price_range is not None and venue.price_range in prefs.preferred_price_ranges


def _vibe_tags(venue: VenueRecord, prefs: PreferenceProfile) -> set[str]:
    return _lower_set(venue.tags) & _lower_set(prefs.preferred_vibes)


def _supports_dietary(venue: VenueRecord, prefs: PreferenceProfile) -> bool:
    if not prefs.dietary_restrictions:
        return True
    return bool(_lower_set(venue.tags) & DIETARY_TAGS)


def score_venue_for_user(venue: VenueRecord, prefs: PreferenceProfile) -> float:
    score = 0
    if _cuisine_match(venue, prefs):
        score += CUISINE_POINTS
    if _price_match(venue, prefs):
        score += PRICE_POINTS
    if _vibe_tags(venue, prefs):
        score += VIBE_POINTS
    if _supports_dietary(venue, prefs):
        score += DIETARY_POINTS
    # Max is 100, so the points are already a percentage.
    return float(score)


def score_venue_for_pair(
    venue: VenueRecord,
    user_prefs: PreferenceProfile,
    partner_prefs: PreferenceProfile,
) -> CollaborativeScore:
    user_cuisine = _cuisine_match(venue, user_prefs)
    partner_cuisine = _cuisine_match(venue, partner_prefs)
    user_price = _price_match(venue, user_prefs)
    partner_price = _price_match(venue, partner_prefs)

    user_score = CUISINE_POINTS * user_cuisine + PRICE_POINTS * user_price
    partner_score = CUISINE_POINTS * partner_cuisine + PRICE_POINTS * partner_price

    shared_score = 0
    if user_cuisine and partner_cuisine:
        shared_score += SHARED_CUISINE_POINTS
    if user_price and partner_price:
        shared_score += SHARED_PRICE_POINTS
    if _vibe_tags(venue, user_prefs) & _vibe_tags(venue, partner_prefs):
        shared_score += SHARED_VIBE_POINTS

    collaborative = (shared_score * 1.5 + (user_score + partner_score) * 0.5) / 2
    return CollaborativeScore(
        user_score=float(user_score),
        partner_score=float(partner_score),
        shared_score=float(shared_score),
        collaborative_score=collaborative,
    )


def filter_venues_by_preferences(
    venues: list[VenueRecord],
    prefs: PreferenceProfile | None,
) -> list[ScoredVenue]:
    if prefs is None:
        logger.info("No preferences found, returning all %d venues unscored", len(venues))
        return [ScoredVenue(venue=v) for v in venues]

    scored = [ScoredVenue(venue=v, preference_score=score_venue_for_user(v, prefs)) for v in venues]
    survivors = sorted(
        (s for s in scored if s.preference_score >= SOLO_MIN_SCORE),
        key=lambda s: s.preference_score,
        reverse=True,
    )
    logger.info("Preference filter for %s: %d -> %d venues", prefs.user_id, len(venues), len(survivors))
    return survivors[: max(SOLO_MIN_RESULTS, len(survivors))]


def filter_venues_by_collaborative_preferences(
    venues: list[VenueRecord],
    user_prefs: PreferenceProfile | None,
    partner_prefs: PreferenceProfile | None,
) -> list[ScoredVenue]:
    if user_prefs is None or partner_prefs is None:
        logger.info("Missing preferences for one participant, using single-user filter")
        return filter_venues_by_preferences(venues, user_prefs or partner_prefs)

    scored: list[ScoredVenue] = []
    for venue in venues:
        result = score_venue_for_pair(venue, user_prefs, partner_prefs)
        scored.append(ScoredVenue(
            venue=venue,
            collaborative_score=result.collaborative_score,
            user_score=result.user_score,
            partner_score=result.partner_score,
            shared_score=result.shared_score,
        ))

    survivors = sorted(
        (s for s in scored if s.collaborative_score >= COLLABORATIVE_MIN_SCORE),
        key=lambda s: s.collaborative_score,
        reverse=True,
    )
    logger.info(
        "Collaborative filter for %s + %s: %d -> %d venues",
        user_prefs.user_id, partner_prefs.user_id, len(venues), len(survivors),
    )
    return survivors[: max(COLLABORATIVE_MIN_RESULTS, len(survivors))]
