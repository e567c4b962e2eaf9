"""Favorite and watchlist membership management."""

from __future__ import annotations

import logging
from typing import Literal

from ..models import CollectionAction, Profile
from .interactions import InteractionRecorder
from .profile_store import ProfileStore

logger = logging.getLogger(__name__)

CollectionName = Literal["favorites", "watchlist"]

_INTERACTION_TYPES = {"favorites": "favorite", "watchlist": "watchlist"}


class CollectionManager:
    """Toggles collection membership and records the matching interaction."""

    def __init__(self, store: ProfileStore, recorder: InteractionRecorder) -> None:
        self._store = store
        self._recorder = recorder

    def toggle_favorite(self, user_id: str, movie_id: int) -> Profile:
        return self._toggle(user_id, movie_id, "favorites")

    def toggle_watchlist(self, user_id: str, movie_id: int) -> Profile:
        return self._toggle(user_id, movie_id, "watchlist")

    def _toggle(self, user_id: str, movie_id: int, collection: CollectionName) -> Profile:
        profiles, profile = self._store.ensure(user_id)
        members: list[int] = getattr(profile, collection)
        action: CollectionAction

        if movie_id in members:
            setattr(profile, collection, [item for item in members if item != movie_id])
            action = "remove"
        else:
            setattr(profile, collection, [*members, movie_id])
            action = "add"

        # Membership change and event are persisted in one write.
        self._recorder.prepend_event(
            profile,
            movie_id,
            _INTERACTION_TYPES[collection],  # type: ignore[arg-type]
            {"action": action},
        )
        self._store.save(profiles)
        logger.info("%s movie %s %s %s", user_id, movie_id, action, collection)
        return profile

    def get_favorites(self, user_id: str) -> list[int]:
        profile = self._store.get(user_id)
        return list(profile.favorites) if profile else []

    def get_watchlist(self, user_id: str) -> list[int]:
        profile = self._store.get(user_id)
        return list(profile.watchlist) if profile else []

    def is_favorite(self, user_id: str, movie_id: int) -> bool:
        return movie_id in self.get_favorites(user_id)

    def is_in_watchlist(self, user_id: str, movie_id: int) -> bool:
        return movie_id in self.get_watchlist(user_id)
