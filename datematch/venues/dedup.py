from __future__ import annotations

import logging

from .config import DEFAULT_AGGREGATOR_CONFIG, AggregatorConfig
from .geo import distance_km, name_similarity, normalize_name
from .models import VenueRecord

logger = logging.getLogger(__name__)

_FILL_IF_EMPTY = ("description", "phone", "website", "address", "cuisine_type", "price_range")


def is_same_venue(
    a: VenueRecord,
    b: VenueRecord,
    config: AggregatorConfig = DEFAULT_AGGREGATOR_CONFIG,
) -> bool:
    """Two records describe one place when names match exactly after
    normalisation, or when they sit within the dedup radius and the names are
    similar enough."""
    name_a, name_b = normalize_name(a.name), normalize_name(b.name)
    if name_a and name_a == name_b:
        return True
    if not (a.has_location and b.has_location):
        return False
    meters = distance_km(a.latitude, a.longitude, b.latitude, b.longitude) * 1000
    if meters >= config.dedup_distance_m:
        return False
    return name_similarity(a.name, b.name) >= config.name_similarity_threshold


def _union(first: list[str], second: list[str]) -> list[str]:
    merged = list(first)
    for item in second:
        if item not in merged:
            merged.append(item)
    return merged


def merge_venue(primary: VenueRecord, secondary: VenueRecord) -> VenueRecord:
    """Fold ``secondary`` into ``primary``; the primary id wins."""
    updates: dict = {
        "photos": _union(primary.photos, secondary.photos),
        "tags": _union(primary.tags, secondary.tags),
        "external_ids": {**secondary.external_ids, **primary.external_ids},
    }
    for field in _FILL_IF_EMPTY:
        if not getattr(primary, field) and getattr(secondary, field):
            updates[field] = getattr(secondary, field)
    if primary.rating is None and secondary.rating is not None:
        updates["rating"] = secondary.rating
    if not primary.opening_hours and secondary.opening_hours:
        updates["opening_hours"] = secondary.opening_hours
    if primary.is_open is None and secondary.is_open is not None:
        updates["is_open"] = secondary.is_open
    return primary.model_copy(update=updates)


def merge_venue_lists(
    primary: list[VenueRecord],
    secondary: list[VenueRecord],
    config: AggregatorConfig = DEFAULT_AGGREGATOR_CONFIG,
) -> list[VenueRecord]:
    """Merge two provider result lists, collapsing duplicates into the
    first-seen record."""
    merged = list(primary)
    duplicates = 0
    for candidate in secondary:
        for index, existing in enumerate(merged):
            if is_same_venue(existing, candidate, config):
                if config.merge_venue_data:
                    merged[index] = merge_venue(existing, candidate)
                duplicates += 1
                break
        else:
            merged.append(candidate)
    if duplicates:
        logger.info("Merged %d duplicate venues across providers", duplicates)
    return merged
