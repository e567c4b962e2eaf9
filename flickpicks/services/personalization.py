"""High level entry point for the personalization engine."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from ..config import Settings
from ..models import InteractionEvent, InteractionType, Movie, MovieDetails, Preferences, Profile
from ..utils import now_ms
from .cache import TTLCache
from .collection_manager import CollectionManager
from .interactions import InteractionRecorder
from .preferences import PreferenceAnalyzer
from .profile_store import ProfileStore
from .recommendations import RecommendationGenerator
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


class PersonalizationService:
    """Facade combining collections, interactions, analysis and recommendations."""

    def __init__(
        self,
        settings: Settings,
        store: ProfileStore,
        catalog: TMDBClient,
        *,
        detail_cache: TTLCache[int, MovieDetails] | None = None,
        clock_ms: Callable[[], int] = now_ms,
    ) -> None:
        self._settings = settings
        self._store = store
        self._catalog = catalog
        self.recorder = InteractionRecorder(store, clock_ms=clock_ms)
        self.collections = CollectionManager(store, self.recorder)
        self.analyzer = PreferenceAnalyzer(
            store,
            catalog,
            detail_cache=(
                detail_cache
                if detail_cache is not None
                else TTLCache(settings.detail_cache_seconds, name="movie detail cache")
            ),
            max_concurrency=settings.detail_fetch_concurrency,
        )
        self.recommender = RecommendationGenerator(
            store,
            catalog,
            self.analyzer,
            fallback_count=settings.fallback_recommendation_count,
            personalized_count=settings.personalized_recommendation_count,
        )

    @property
    def store(self) -> ProfileStore:
        return self._store

    @property
    def catalog(self) -> TMDBClient:
        return self._catalog

    def get_profile(self, user_id: str) -> Profile | None:
        return self._store.get(user_id)

    def ensure_profile(self, user_id: str) -> Profile:
        _, profile = self._store.ensure(user_id)
        return profile

    def clear_user(self, user_id: str) -> None:
        """Drop a user's profile (logout)."""

        self._store.clear(user_id)
        logger.info("Cleared profile for %s", user_id)

    def record_interaction(
        self,
        user_id: str,
        movie_id: int,
        interaction_type: InteractionType,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        self.recorder.record(
            user_id, movie_id, interaction_type, dict(metadata) if metadata else None
        )

    def track_click(self, user_id: str, movie_id: int) -> None:
        self.record_interaction(user_id, movie_id, "click")

    def add_search_to_history(self, user_id: str, query: str) -> None:
        self.recorder.add_search_to_history(user_id, query)

    def get_interactions(self, user_id: str) -> list[InteractionEvent]:
        return self.recorder.get_interactions(user_id)

    def get_search_history(self, user_id: str) -> list[str]:
        return self.recorder.get_search_history(user_id)

    def toggle_favorite(self, user_id: str, movie_id: int) -> Profile:
        return self.collections.toggle_favorite(user_id, movie_id)

    def toggle_watchlist(self, user_id: str, movie_id: int) -> Profile:
        return self.collections.toggle_watchlist(user_id, movie_id)

    def get_favorites(self, user_id: str) -> list[int]:
        return self.collections.get_favorites(user_id)

    def get_watchlist(self, user_id: str) -> list[int]:
        return self.collections.get_watchlist(user_id)

    def is_favorite(self, user_id: str, movie_id: int) -> bool:
        return self.collections.is_favorite(user_id, movie_id)

    def is_in_watchlist(self, user_id: str, movie_id: int) -> bool:
        return self.collections.is_in_watchlist(user_id, movie_id)

    async def analyze_user_preferences(self, user_id: str) -> Preferences:
        return await self.analyzer.analyze_user_preferences(user_id)

    def update_preferences(self, user_id: str, changes: Mapping[str, Any]) -> Profile:
        return self.analyzer.update_preferences(user_id, changes)

    async def get_personalized_recommendations(self, user_id: str) -> list[Movie]:
        return await self.recommender.get_personalized_recommendations(user_id)
