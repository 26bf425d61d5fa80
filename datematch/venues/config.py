from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


class VenueSearchStrategy(str, Enum):
    parallel = "parallel"
    primary_first = "primary-first"
    secondary_first = "secondary-first"


@dataclass(frozen=True)
class ProviderConfig:
    google_places_api_key: str = os.getenv("GOOGLE_PLACES_API_KEY", "")
    foursquare_api_key: str = os.getenv("FOURSQUARE_API_KEY", "")
    google_places_url: str = "https://places.googleapis.com/v1/places:searchNearby"
    foursquare_url: str = "https://api.foursquare.com/v3/places/search"
    max_results_per_source: int = 20
    timeout: float = 10.0


@dataclass(frozen=True)
class AggregatorConfig:
    strategy: VenueSearchStrategy = VenueSearchStrategy(
        os.getenv("VENUE_SEARCH_STRATEGY", VenueSearchStrategy.parallel.value)
    )
    use_primary: bool = os.getenv("USE_GOOGLE_PLACES", "true").lower() == "true"
    use_secondary: bool = os.getenv("USE_FOURSQUARE", "true").lower() == "true"
    merge_venue_data: bool = True
    max_total_venues: int = 30
    min_venues_for_success: int = 3
    dedup_distance_m: float = 50.0
    name_similarity_threshold: float = 0.8
    provider_timeout: float = 10.0
    request_timeout: float = 20.0
    cache_ttl_seconds: int = 30 * 60
    cache_max_entries: int = 50
    cache_precision: int = 3
    catalog_sample_fallback: bool = True
    catalog_sample_size: int = 50


DEFAULT_PROVIDER_CONFIG = ProviderConfig()
DEFAULT_AGGREGATOR_CONFIG = AggregatorConfig()
