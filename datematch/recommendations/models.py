from __future__ import annotations

from pydantic import BaseModel, Field

from ..scoring.models import MatchFactors


class RecommendationRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    partner_id: str | None = Field(default=None, description="Second participant for collaborative planning")
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)
    radius_km: float | None = Field(
        default=None, gt=0.0, description="Defaults to the user's max distance preference"
    )
    limit: int = Field(default=10, ge=1, le=50)


class RecommendationItem(BaseModel):
    venue_id: str
    name: str
    address: str = ""
    cuisine_type: str | None = None
    price_range: str | None = None
    rating: float | None = None
    tags: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    latitude: float | None = None
    longitude: float | None = None
    source: str = "catalog"
    ai_score: float
    confidence_level: float
    reasoning: str
    match_factors: MatchFactors = Field(default_factory=MatchFactors)
    contextual_score: float = 0.0
    preference_score: float | None = None
    collaborative_score: float | None = None
    distance: str | None = None
    is_open: bool | None = None
    neighborhood: str | None = None


class RecommendationResponse(BaseModel):
    recommendations: list[RecommendationItem]
    total_candidates: int
    mode: str = "solo"
    sources: list[str] = Field(default_factory=list)
    cache_hit: bool = False
    fallback: str | None = None
