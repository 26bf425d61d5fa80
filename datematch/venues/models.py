from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

PriceRange = Literal["$", "$$", "$$$", "$$$$"]

PRICE_ORDER: list[str] = ["$", "$$", "$$$", "$$$$"]


class VenueIdentifierError(ValueError):
    """Raised when a raw provider payload carries no usable place identifier."""


class VenueRecord(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    address: str = ""
    latitude: float | None = None
    longitude: float | None = None
    cuisine_type: str | None = None
    price_range: PriceRange | None = None
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    tags: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    description: str = ""
    phone: str = ""
    website: str = ""
    opening_hours: list[str] = Field(default_factory=list)
    is_open: bool | None = None
    source: str = "catalog"
    external_ids: dict[str, str] = Field(default_factory=dict)
    is_active: bool = True

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class VenueQuery(BaseModel):
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)
    radius_km: float = Field(default=5.0, gt=0.0)
    cuisines: list[str] = Field(default_factory=list)
    vibes: list[str] = Field(default_factory=list)
    price_ranges: list[str] = Field(default_factory=list)

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class AggregationResult(BaseModel):
    venues: list[VenueRecord] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    cache_hit: bool = False
    fallback: str | None = None
    fetched_at: datetime = Field(default_factory=datetime.now)
