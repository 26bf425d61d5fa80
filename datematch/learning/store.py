from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import datetime

from .models import FeedbackRecord, WeightVector


class VersionConflictError(RuntimeError):
    """The stored weight vector changed since it was read."""


class LearnedWeightStore(ABC):
    @abstractmethod
    def get_weights(self, user_id: str) -> WeightVector | None:
        raise NotImplementedError

    @abstractmethod
    def upsert_weights(
        self,
        user_id: str,
        vector: WeightVector,
        expected_version: int | None = None,
    ) -> WeightVector:
        """Store ``vector`` and return it with its new version.

        With ``expected_version`` set, the write only succeeds when the stored
        version (0 for a missing row) still equals it; otherwise
        ``VersionConflictError`` is raised.
        """
        raise NotImplementedError


class InMemoryLearnedWeightStore(LearnedWeightStore):
    def __init__(self) -> None:
        self._vectors: dict[str, WeightVector] = {}
        self._lock = threading.Lock()

    def get_weights(self, user_id: str) -> WeightVector | None:
        with self._lock:
            vector = self._vectors.get(user_id)
            return vector.model_copy(deep=True) if vector else None

    def upsert_weights(
        self,
        user_id: str,
        vector: WeightVector,
        expected_version: int | None = None,
    ) -> WeightVector:
        with self._lock:
            current = self._vectors.get(user_id)
            current_version = current.version if current else 0
            if expected_version is not None and expected_version != current_version:
                raise VersionConflictError(
                    f"weights for {user_id} at version {current_version}, expected {expected_version}"
                )
            stored = vector.model_copy(update={
                "user_id": user_id,
                "version": current_version + 1,
                "last_updated": datetime.now(),
            })
            self._vectors[user_id] = stored
            return stored.model_copy(deep=True)


class FeedbackLog(ABC):
    @abstractmethod
    def append(self, record: FeedbackRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[FeedbackRecord]:
        raise NotImplementedError


class InMemoryFeedbackLog(FeedbackLog):
    def __init__(self) -> None:
        self._records: list[FeedbackRecord] = []
        self._lock = threading.Lock()

    def append(self, record: FeedbackRecord) -> None:
        with self._lock:
            self._records.append(record)

    def list_for_user(self, user_id: str) -> list[FeedbackRecord]:
        with self._lock:
            return [r for r in self._records if r.user_id == user_id]

    def __len__(self) -> int:
        return len(self._records)
