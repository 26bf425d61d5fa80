from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from .models import AIVenueScore


class AIScoreStore(ABC):
    @abstractmethod
    def upsert_score(self, score: AIVenueScore) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_score(self, venue_id: str, user_id: str) -> AIVenueScore | None:
        raise NotImplementedError


class InMemoryAIScoreStore(AIScoreStore):
    """Last write wins per (venue_id, user_id)."""

    def __init__(self) -> None:
        self._scores: dict[tuple[str, str], AIVenueScore] = {}
        self._lock = threading.Lock()

    def upsert_score(self, score: AIVenueScore) -> None:
        with self._lock:
            self._scores[(score.venue_id, score.user_id)] = score

    def get_score(self, venue_id: str, user_id: str) -> AIVenueScore | None:
        with self._lock:
            return self._scores.get((venue_id, user_id))

    def __len__(self) -> int:
        return len(self._scores)
