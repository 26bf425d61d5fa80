from __future__ import annotations

from abc import ABC, abstractmethod

from .models import PreferenceProfile


class PreferenceStore(ABC):
    @abstractmethod
    def get_preferences(self, user_id: str) -> PreferenceProfile | None:
        raise NotImplementedError


class InMemoryPreferenceStore(PreferenceStore):
    def __init__(self, profiles: list[PreferenceProfile] | None = None) -> None:
        self._profiles: dict[str, PreferenceProfile] = {p.user_id: p for p in profiles or []}

    def get_preferences(self, user_id: str) -> PreferenceProfile | None:
        return self._profiles.get(user_id)

    def save_preferences(self, profile: PreferenceProfile) -> None:
        self._profiles[profile.user_id] = profile
