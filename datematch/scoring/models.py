from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MatchFactors(BaseModel):
    cuisine_match: bool = False
    price_match: bool = False
    vibe_matches: list[str] = Field(default_factory=list)
    rating_bonus: float = 0.0

    def truthy_count(self) -> int:
        return sum(1 for value in self.model_dump().values() if value)


class AIScoreResult(BaseModel):
    ai_score: float
    match_factors: MatchFactors = Field(default_factory=MatchFactors)
    contextual_score: float = 0.0
    reasoning: str = ""
    confidence_level: float = 0.0


class AIVenueScore(BaseModel):
    venue_id: str
    user_id: str
    ai_score: float
    match_factors: MatchFactors
    contextual_score: float
    updated_at: datetime = Field(default_factory=datetime.now)
