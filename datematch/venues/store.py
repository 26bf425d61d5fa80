from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from pathlib import Path

import pandas as pd

from .geo import distances_km
from .models import VenueRecord


class VenueStore(ABC):
    """Persistent catalog of known venues."""

    @abstractmethod
    def get_active_venues(self, limit: int = 50) -> list[VenueRecord]:
        raise NotImplementedError

    @abstractmethod
    def get_venue(self, venue_id: str) -> VenueRecord | None:
        raise NotImplementedError

    @abstractmethod
    def upsert_venue(self, record: VenueRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    def query_by_radius(self, lat: float, lon: float, radius_km: float) -> list[VenueRecord]:
        raise NotImplementedError


class InMemoryVenueStore(VenueStore):
    def __init__(self, venues: list[VenueRecord] | None = None) -> None:
        self._venues: dict[str, VenueRecord] = {}
        self._lock = threading.Lock()
        for venue in venues or []:
            self._venues[venue.id] = venue

    def __len__(self) -> int:
        return len(self._venues)

    def get_active_venues(self, limit: int = 50) -> list[VenueRecord]:
        with self._lock:
            active = [v for v in self._venues.values() if v.is_active]
        return active[:limit]

    def get_venue(self, venue_id: str) -> VenueRecord | None:
        return self._venues.get(venue_id)

    def upsert_venue(self, record: VenueRecord) -> None:
        with self._lock:
            self._venues[record.id] = record

    def _frame(self) -> pd.DataFrame:
        with self._lock:
            rows = [
                {"id": v.id, "latitude": v.latitude, "longitude": v.longitude}
                for v in self._venues.values()
                if v.is_active
            ]
        return pd.DataFrame(rows, columns=["id", "latitude", "longitude"])

    def query_by_radius(self, lat: float, lon: float, radius_km: float) -> list[VenueRecord]:
        df = self._frame().dropna(subset=["latitude", "longitude"])
        if df.empty:
            return []
        df = df.assign(
            distance_km=distances_km(
                lat,
                lon,
                df["latitude"].to_numpy(dtype=float),
                df["longitude"].to_numpy(dtype=float),
            )
        )
        nearby = df.loc[df["distance_km"] <= radius_km].sort_values("distance_km")
        return [self._venues[vid] for vid in nearby["id"]]


def _split_list(value) -> list[str]:
    if not isinstance(value, str):
        return []
    return [item.strip() for item in value.split("|") if item.strip()]


def load_catalog_csv(path: Path) -> InMemoryVenueStore:
    """Build a venue store from a CSV export of the catalog.

    List columns (``tags``, ``photos``, ``opening_hours``) are pipe-separated.
    """
    df = pd.read_csv(path)
    venues: list[VenueRecord] = []
    for _, row in df.iterrows():
        venues.append(VenueRecord(
            id=str(row["id"]),
            name=row["name"],
            address=row.get("address") if pd.notna(row.get("address")) else "",
            latitude=float(row["latitude"]) if pd.notna(row.get("latitude")) else None,
            longitude=float(row["longitude"]) if pd.notna(row.get("longitude")) else None,
            cuisine_type=row.get("cuisine_type") if pd.notna(row.get("cuisine_type")) else None,
            price_range=row.get("price_range") if pd.notna(row.get("price_range")) else None,
            rating=float(row["rating"]) if pd.notna(row.get("rating")) else None,
            tags=_split_list(row.get("tags")),
            photos=_split_list(row.get("photos")),
            opening_hours=_split_list(row.get("opening_hours")),
            source="catalog",
        ))
    return InMemoryVenueStore(venues)
