from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class FeatureWeights(BaseModel):
    cuisine: float = 1.0
    vibe: float = 1.0
    price: float = 1.0
    time: float = 1.0
    rating: float = 1.0


class WeightVector(BaseModel):
    """Learning state as persisted; weights are stored unclamped."""

    user_id: str
    feature_weights: dict[str, Any] = Field(default_factory=dict)
    ai_accuracy: float = 0.0
    total_ratings: int = 0
    successful_predictions: int = 0
    version: int = 0
    last_updated: datetime = Field(default_factory=datetime.now)


class LearnedWeights(BaseModel):
    user_id: str
    weights: FeatureWeights = Field(default_factory=FeatureWeights)
    ai_accuracy: float = 0.0
    total_ratings: int = 0
    successful_predictions: int = 0
    has_learning_data: bool = False
    version: int = 0


class FeedbackRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    partner_id: str | None = None
    venue_id: str = Field(..., min_length=1)
    invitation_id: str | None = None
    predicted_score: float = Field(default=0.0, ge=0.0, le=100.0)
    predicted_factors: dict[str, Any] = Field(default_factory=dict)
    actual_rating: int | None = Field(default=None, ge=1, le=5)
    venue_rating: int | None = Field(default=None, ge=1, le=5)
    would_recommend: bool | None = None
    context: dict[str, Any] = Field(default_factory=dict)


class FeedbackRecord(BaseModel):
    user_id: str
    partner_id: str | None = None
    venue_id: str
    invitation_id: str | None = None
    predicted_score: float
    predicted_factors: dict[str, Any] = Field(default_factory=dict)
    actual_rating: int | None = None
    venue_rating: int | None = None
    would_recommend: bool | None = None
    prediction_error: float | None = None
    success_factors: list[str] = Field(default_factory=list)
    failure_factors: list[str] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)


class FeedbackResponse(BaseModel):
    status: str = "recorded"
    total_ratings: int
    ai_accuracy: float
    prediction_error: float | None = None
    improvement_percent: float
