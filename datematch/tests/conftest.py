from __future__ import annotations

import pytest

from datematch.venues.models import VenueRecord


@pytest.fixture
def make_venue():
    def _make(venue_id: str = "v1", **overrides) -> VenueRecord:
        data = {
            "id": venue_id,
            "name": f"Venue {venue_id}",
            "address": "Lange Reihe 5, St. Georg, Hamburg",
            "latitude": 53.5511,
            "longitude": 9.9937,
        }
        data.update(overrides)
        return VenueRecord(**data)

    return _make
