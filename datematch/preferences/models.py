from __future__ import annotations

from pydantic import BaseModel, Field

from ..venues.models import VenueRecord


class PreferenceProfile(BaseModel):
    user_id: str = Field(..., min_length=1)
    preferred_cuisines: list[str] = Field(default_factory=list)
    preferred_vibes: list[str] = Field(default_factory=list)
    preferred_price_ranges: list[str] = Field(default_factory=list)
    preferred_times: list[str] = Field(default_factory=list)
    max_distance_km: float = Field(default=10.0, gt=0.0)
    dietary_restrictions: list[str] = Field(default_factory=list)


class CollaborativeScore(BaseModel):
    user_score: float = 0.0
    partner_score: float = 0.0
    shared_score: float = 0.0
    collaborative_score: float = 0.0


class ScoredVenue(BaseModel):
    venue: VenueRecord
    preference_score: float | None = None
    collaborative_score: float | None = None
    user_score: float | None = None
    partner_score: float | None = None
    shared_score: float | None = None
