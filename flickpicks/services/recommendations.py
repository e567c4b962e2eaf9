"""Turn derived preferences into a ranked list of movies."""

from __future__ import annotations

import logging

from ..models import DiscoverQuery, Movie, Preferences
from .preferences import PreferenceAnalyzer
from .profile_store import ProfileStore
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "popular"


def build_discover_query(preferences: Preferences) -> DiscoverQuery:
    """Discovery filters for a user with at least one favorite genre.

    Genres are OR-ed together, while only the single most preferred decade
    narrows the release window.
    """

    filters = {
        "sort_by": "popularity.desc",
        "min_rating": preferences.min_rating,
        "genres": list(preferences.favorite_genres),
    }
    if preferences.preferred_release_decades:
        return DiscoverQuery.for_decade(preferences.preferred_release_decades[0], **filters)
    return DiscoverQuery(**filters)


class RecommendationGenerator:
    """Builds personalized recommendations with a popularity fallback."""

    def __init__(
        self,
        store: ProfileStore,
        catalog: TMDBClient,
        analyzer: PreferenceAnalyzer,
        *,
        fallback_count: int = 12,
        personalized_count: int = 20,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._analyzer = analyzer
        self._fallback_count = fallback_count
        self._personalized_count = personalized_count

    async def get_personalized_recommendations(self, user_id: str) -> list[Movie]:
        """Never raises: failures degrade to the popular list (or ``[]``)."""

        profile = self._store.get(user_id)
        if profile is None:
            return []

        try:
            preferences = profile.preferences
            if profile.interactions:
                preferences = await self._analyzer.analyze_user_preferences(user_id)

            if not preferences.favorite_genres:
                return await self._popular_fallback()

            query = build_discover_query(preferences)
            page = await self._catalog.discover(query)
            return list(page.results[: self._personalized_count])
        except Exception:
            logger.exception(
                "Personalized recommendations failed for %s; using popular movies",
                user_id,
            )
            return await self._popular_fallback()

    async def _popular_fallback(self) -> list[Movie]:
        try:
            page = await self._catalog.fetch_by_category(FALLBACK_CATEGORY, 1)
        except Exception:
            logger.exception("Popular fallback failed")
            return []
        return list(page.results[: self._fallback_count])
