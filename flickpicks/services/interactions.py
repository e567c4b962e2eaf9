"""Recording user interactions and search history."""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..models import InteractionEvent, InteractionType, Profile
from ..utils import normalize_query, now_ms
from .profile_store import ProfileStore

logger = logging.getLogger(__name__)


class InteractionRecorder:
    """Appends typed events to a user's bounded interaction log."""

    def __init__(
        self,
        store: ProfileStore,
        *,
        clock_ms: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._clock_ms = clock_ms

    def record(
        self,
        user_id: str,
        movie_id: int,
        interaction_type: InteractionType,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Prepend a new event and persist. Storage failures are only logged."""

        profiles, profile = self._store.ensure(user_id)
        self.prepend_event(profile, movie_id, interaction_type, metadata)
        self._store.save(profiles)

    def prepend_event(
        self,
        profile: Profile,
        movie_id: int,
        interaction_type: InteractionType,
        metadata: dict[str, Any] | None,
    ) -> InteractionEvent:
        event = InteractionEvent(
            movie_id=movie_id,
            type=interaction_type,
            timestamp=self._clock_ms(),
            metadata=dict(metadata) if metadata else None,
        )
        profile.interactions = [event, *profile.interactions][
            : self._store.interaction_limit
        ]
        logger.debug(
            "Recorded %s interaction for %s on movie %s",
            interaction_type,
            profile.id,
            movie_id,
        )
        return event

    def add_search_to_history(self, user_id: str, query: str) -> None:
        normalized = normalize_query(query)
        if not normalized:
            return
        profiles, profile = self._store.ensure(user_id)
        if normalized in profile.search_history:
            return
        profile.search_history = [normalized, *profile.search_history][
            : self._store.search_limit
        ]
        self._store.save(profiles)

    def get_interactions(self, user_id: str) -> list[InteractionEvent]:
        profile = self._store.get(user_id)
        return list(profile.interactions) if profile else []

    def get_search_history(self, user_id: str) -> list[str]:
        profile = self._store.get(user_id)
        return list(profile.search_history) if profile else []
