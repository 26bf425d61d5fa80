from __future__ import annotations

import re

import numpy as np
from fuzzywuzzy import fuzz
from geopy.distance import great_circle

EARTH_RADIUS_KM = 6371.0

_NON_WORD = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    return great_circle((lat1, lon1), (lat2, lon2)).kilometers


def distances_km(lat: float, lon: float, lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """Vectorised haversine from one point to many, in kilometres."""
    lat1 = np.radians(lat)
    lat2 = np.radians(lats)
    dlat = lat2 - lat1
    dlon = np.radians(lons) - np.radians(lon)
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def format_distance(km: float) -> str:
    metres = round(km * 1000)
    if metres < 1000:
        return f"{metres}m"
    return f"{km:.1f}km"


def normalize_name(name: str | None) -> str:
    if not name:
        return ""
    cleaned = _NON_WORD.sub(" ", name.lower())
    return _SPACES.sub(" ", cleaned).strip()


def name_similarity(a: str | None, b: str | None) -> float:
    """Similarity of two venue names in [0, 1]."""
    na, nb = normalize_name(a), normalize_name(b)
    if not na and not nb:
        return 1.0
    if not na or not nb:
        return 0.0
    return fuzz.ratio(na, nb) / 100.0


def extract_neighborhood(address: str | None) -> str | None:
    """Return the area component of a comma-separated address.

    "Street, Neighborhood, City" yields the neighborhood; when the second part
    looks like a postal code (or is too short to be a name) the third part is
    used instead.
    """
    if not address:
        return None
    parts = [p.strip() for p in address.split(",")]
    if len(parts) < 2:
        return None
    candidate = parts[1]
    if candidate.isdigit() or len(candidate) < 3:
        return parts[2] if len(parts) > 2 and parts[2] else None
    return candidate
