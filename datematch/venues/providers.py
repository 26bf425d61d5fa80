"""Place-search providers and the adapters that normalise their payloads."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import requests
from pydantic import ValidationError

from .config import DEFAULT_PROVIDER_CONFIG, ProviderConfig
from .models import VenueIdentifierError, VenueRecord

logger = logging.getLogger(__name__)

GOOGLE_CUISINE_TYPES: dict[str, list[str]] = {
    "italian": ["italian_restaurant"],
    "japanese": ["japanese_restaurant", "sushi_restaurant"],
    "mexican": ["mexican_restaurant"],
    "french": ["french_restaurant"],
    "indian": ["indian_restaurant"],
    "mediterranean": ["mediterranean_restaurant", "greek_restaurant"],
    "american": ["american_restaurant", "hamburger_restaurant"],
    "thai": ["thai_restaurant"],
    "chinese": ["chinese_restaurant"],
    "korean": ["korean_restaurant"],
}

GOOGLE_VIBE_TYPES: dict[str, list[str]] = {
    "romantic": ["fine_dining_restaurant", "wine_bar"],
    "casual": ["restaurant", "cafe"],
    "outdoor": ["restaurant", "bar"],
    "nightlife": ["bar", "night_club", "cocktail_lounge"],
    "cultural": ["restaurant", "cafe"],
    "adventurous": ["restaurant", "bar"],
}

_GOOGLE_TYPE_TO_CUISINE: dict[str, str] = {
    "italian_restaurant": "Italian",
    "japanese_restaurant": "Japanese",
    "sushi_restaurant": "Japanese",
    "mexican_restaurant": "Mexican",
    "french_restaurant": "French",
    "indian_restaurant": "Indian",
    "mediterranean_restaurant": "Mediterranean",
    "greek_restaurant": "Mediterranean",
    "american_restaurant": "American",
    "hamburger_restaurant": "American",
    "thai_restaurant": "Thai",
    "chinese_restaurant": "Chinese",
    "korean_restaurant": "Korean",
}

_GOOGLE_PRICE_LEVELS: dict[str, str] = {
    "PRICE_LEVEL_INEXPENSIVE": "$",
    "PRICE_LEVEL_MODERATE": "$$",
    "PRICE_LEVEL_EXPENSIVE": "$$$",
    "PRICE_LEVEL_VERY_EXPENSIVE": "$$$$",
}

_GOOGLE_FIELD_MASK = ",".join(
    f"places.{field}"
    for field in (
        "id", "displayName", "types", "rating", "userRatingCount", "priceLevel",
        "location", "formattedAddress", "photos", "currentOpeningHours",
        "nationalPhoneNumber", "websiteUri", "editorialSummary",
    )
)

FOURSQUARE_CATEGORIES: dict[str, str] = {
    "italian": "13236",
    "pizza": "13064",
    "asian": "13072",
    "chinese": "13099",
    "japanese": "13263",
    "thai": "13352",
    "mexican": "13303",
    "american": "13031",
    "cafe": "13035",
    "coffee": "13034",
    "bakery": "13002",
    "bar": "13003",
    "french": "13148",
    "indian": "13199",
    "mediterranean": "13304",
    "seafood": "13338",
    "steakhouse": "13346",
    "vegetarian": "13377",
    "burger": "13028",
}

_FOURSQUARE_PRICES: dict[int, str] = {1: "$", 2: "$$", 3: "$$$", 4: "$$$$"}

_FOURSQUARE_FIELDS = (
    "fsq_id,name,location,geocodes,categories,rating,price,photos,hours,"
    "tel,website,description,verified"
)


class BaseVenueProvider(ABC):
    name: str
    api_name: str

    @abstractmethod
    def search(
        self,
        lat: float,
        lon: float,
        radius_meters: int,
        category_hints: list[str],
    ) -> list[VenueRecord]:
        raise NotImplementedError

    def _normalize_all(self, raw_places: list[dict[str, Any]]) -> list[VenueRecord]:
        venues: list[VenueRecord] = []
        for raw in raw_places:
            try:
                venues.append(self.to_venue_record(raw))
            except VenueIdentifierError:
                logger.warning("%s: skipping place without identifier: %s", self.name, raw.get("name"))
            except ValidationError as exc:
                logger.warning("%s: skipping invalid place %s: %s", self.name, raw.get("id") or raw.get("fsq_id"), exc)
        return venues

    @abstractmethod
    def to_venue_record(self, raw: dict[str, Any]) -> VenueRecord:
        raise NotImplementedError


# ── Google Places ────────────────────────────────────────────────────────


def _google_cuisine(types: list[str]) -> str | None:
    for place_type in types:
        if place_type in _GOOGLE_TYPE_TO_CUISINE:
            return _GOOGLE_TYPE_TO_CUISINE[place_type]
    return None


def _google_tags(raw: dict[str, Any]) -> list[str]:
    types = raw.get("types") or []
    tags: list[str] = []
    if "fine_dining_restaurant" in types or "wine_bar" in types:
        tags.append("romantic")
    if "bar" in types or "night_club" in types:
        tags.append("nightlife")
    if "cafe" in types:
        tags.append("casual")
    if "fine_dining_restaurant" in types:
        tags.append("fine dining")
    if "bar" in types:
        tags.append("bar")
    if "wine_bar" in types:
        tags.append("wine")
    if (raw.get("currentOpeningHours") or {}).get("openNow"):
        tags.append("open now")
    rating = raw.get("rating")
    if rating is not None and rating >= 4.5:
        tags.append("highly rated")
    return tags


class GooglePlacesProvider(BaseVenueProvider):
    """Provider 1: Google Places (new) Nearby Search."""

    name = "google_places"
    api_name = "google_places"

    def __init__(self, config: ProviderConfig = DEFAULT_PROVIDER_CONFIG, session: requests.Session | None = None):
        self.config = config
        self.api_key = config.google_places_api_key
        self.session = session or requests.Session()

    def included_types(self, category_hints: list[str]) -> list[str]:
        types: list[str] = []
        for hint in category_hints:
            key = hint.lower()
            for place_type in GOOGLE_CUISINE_TYPES.get(key) or GOOGLE_VIBE_TYPES.get(key) or ["restaurant"]:
                if place_type not in types:
                    types.append(place_type)
        return types[:10] or ["restaurant"]

    def search(self, lat: float, lon: float, radius_meters: int, category_hints: list[str]) -> list[VenueRecord]:
        if not self.api_key:
            logger.warning("No Google Places API key provided")
            return []

        body = {
            "includedTypes": self.included_types(category_hints),
            "maxResultCount": self.config.max_results_per_source,
            "locationRestriction": {
                "circle": {
                    "center": {"latitude": lat, "longitude": lon},
                    "radius": float(radius_meters),
                }
            },
        }
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": _GOOGLE_FIELD_MASK,
        }
        response = self.session.post(
            self.config.google_places_url, json=body, headers=headers, timeout=self.config.timeout,
        )
        response.raise_for_status()
        places = response.json().get("places") or []
        logger.info("Google Places returned %d places", len(places))
        return self._normalize_all(places)

    def _photo_url(self, photo: dict[str, Any]) -> str | None:
        name = photo.get("name")
        if not name:
            return None
        return f"https://places.googleapis.com/v1/{name}/media?maxWidthPx=400&maxHeightPx=300&key={self.api_key}"

    def to_venue_record(self, raw: dict[str, Any]) -> VenueRecord:
        place_id = str(raw.get("id") or "").strip()
        if not place_id:
            raise VenueIdentifierError("Google place payload has no id")

        location = raw.get("location") or {}
        hours = raw.get("currentOpeningHours") or {}
        photos = [url for url in (self._photo_url(p) for p in raw.get("photos") or []) if url]
        return VenueRecord(
            id=place_id,
            name=(raw.get("displayName") or {}).get("text") or "Unknown Venue",
            address=raw.get("formattedAddress") or "",
            latitude=location.get("latitude"),
            longitude=location.get("longitude"),
            cuisine_type=_google_cuisine(raw.get("types") or []),
            price_range=_GOOGLE_PRICE_LEVELS.get(raw.get("priceLevel") or ""),
            rating=raw.get("rating"),
            tags=_google_tags(raw),
            photos=photos,
            description=(raw.get("editorialSummary") or {}).get("text") or "",
            phone=raw.get("nationalPhoneNumber") or "",
            website=raw.get("websiteUri") or "",
            opening_hours=hours.get("weekdayDescriptions") or [],
            is_open=hours.get("openNow"),
            source=self.name,
            external_ids={"google_place_id": place_id},
        )


# ── Foursquare ───────────────────────────────────────────────────────────


class FoursquareProvider(BaseVenueProvider):
    """Provider 2: Foursquare Places v3 search."""

    name = "foursquare"
    api_name = "foursquare"

    def __init__(self, config: ProviderConfig = DEFAULT_PROVIDER_CONFIG, session: requests.Session | None = None):
        self.config = config
        self.api_key = config.foursquare_api_key
        self.session = session or requests.Session()

    @staticmethod
    def category_ids(category_hints: list[str]) -> str:
        ids: list[str] = []
        for hint in category_hints:
            category = FOURSQUARE_CATEGORIES.get(hint.lower())
            if category and category not in ids:
                ids.append(category)
        return ",".join(ids)

    def search(self, lat: float, lon: float, radius_meters: int, category_hints: list[str]) -> list[VenueRecord]:
        if not self.api_key:
            logger.warning("No Foursquare API key provided")
            return []

        params = {
            "ll": f"{lat},{lon}",
            "radius": str(int(radius_meters)),
            "limit": str(self.config.max_results_per_source),
            "fields": _FOURSQUARE_FIELDS,
        }
        categories = self.category_ids(category_hints)
        if categories:
            params["categories"] = categories

        response = self.session.get(
            self.config.foursquare_url,
            params=params,
            headers={"Authorization": self.api_key, "Accept": "application/json"},
            timeout=self.config.timeout,
        )
        response.raise_for_status()
        results = response.json().get("results") or []
        logger.info("Foursquare returned %d places", len(results))
        return self._normalize_all(results)

    def to_venue_record(self, raw: dict[str, Any]) -> VenueRecord:
        fsq_id = str(raw.get("fsq_id") or "").strip()
        if not fsq_id:
            raise VenueIdentifierError("Foursquare payload has no fsq_id")

        location = raw.get("location") or {}
        geocode = (raw.get("geocodes") or {}).get("main") or {}
        categories = raw.get("categories") or []
        address = location.get("formatted_address") or ", ".join(
            part for part in (location.get("address"), location.get("locality")) if part
        )
        # Foursquare rates on a 0-10 scale.
        rating = raw.get("rating")
        hours = raw.get("hours") or {}
        photos = [
            f"{p['prefix']}original{p['suffix']}"
            for p in raw.get("photos") or []
            if p.get("prefix") and p.get("suffix")
        ]
        return VenueRecord(
            id=fsq_id,
            name=raw.get("name") or "Unknown Venue",
            address=address,
            latitude=geocode.get("latitude", location.get("latitude")),
            longitude=geocode.get("longitude", location.get("longitude")),
            cuisine_type=categories[0].get("name") if categories else None,
            price_range=_FOURSQUARE_PRICES.get(raw.get("price")),
            rating=round(rating / 2, 2) if rating is not None else None,
            tags=[c["name"] for c in categories if c.get("name")],
            photos=photos,
            description=raw.get("description") or "",
            phone=raw.get("tel") or "",
            website=raw.get("website") or "",
            opening_hours=[hours["display"]] if hours.get("display") else [],
            is_open=hours.get("open_now"),
            source=self.name,
            external_ids={"foursquare_id": fsq_id},
        )
