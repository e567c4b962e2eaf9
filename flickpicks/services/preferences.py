"""Derive preference signals from a user's interaction history."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Iterable, Mapping, Sequence

from ..models import DEFAULT_MIN_RATING, MovieDetails, Preferences, Profile
from ..utils import decade_of, dedupe, rank_by_frequency
from .cache import TTLCache
from .profile_store import ProfileStore
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

# Watchlist and search events do not feed genre/decade inference.
SIGNAL_INTERACTION_TYPES = frozenset({"click", "favorite"})

FAVORITE_GENRE_LIMIT = 5
RELEASE_DECADE_LIMIT = 3
RATING_FLOOR = 5

DETAIL_CACHE_TTL_SECONDS = 24 * 60 * 60


def score_genres(
    movies: Iterable[MovieDetails], limit: int = FAVORITE_GENRE_LIMIT
) -> list[int]:
    """Top genre ids by occurrence count across ``movies``."""

    return rank_by_frequency(
        (genre_id for movie in movies for genre_id in movie.genre_id_list), limit
    )


def score_decades(
    movies: Iterable[MovieDetails], limit: int = RELEASE_DECADE_LIMIT
) -> list[int]:
    """Top release decades; movies without a parseable date are skipped."""

    decades = (decade_of(movie.release_date) for movie in movies)
    return rank_by_frequency((decade for decade in decades if decade is not None), limit)


def rating_floor(movies: Iterable[MovieDetails]) -> int:
    """Floor of the lowest positive rating, never below ``RATING_FLOOR``."""

    ratings = [movie.vote_average for movie in movies if movie.vote_average > 0]
    if not ratings:
        return int(DEFAULT_MIN_RATING)
    return max(RATING_FLOOR, math.floor(min(ratings)))


def signal_movie_ids(profile: Profile) -> list[int]:
    """Distinct movie ids from click/favorite events, first-seen order."""

    return dedupe(
        event.movie_id
        for event in profile.interactions
        if event.type in SIGNAL_INTERACTION_TYPES
    )


class PreferenceAnalyzer:
    """Builds ``Preferences`` from interactions plus fetched movie metadata."""

    def __init__(
        self,
        store: ProfileStore,
        catalog: TMDBClient,
        *,
        detail_cache: TTLCache[int, MovieDetails] | None = None,
        max_concurrency: int = 10,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._store = store
        self._catalog = catalog
        if detail_cache is None:
            detail_cache = TTLCache(DETAIL_CACHE_TTL_SECONDS, name="movie detail cache")
        self._detail_cache: TTLCache[int, MovieDetails] = detail_cache
        self._max_concurrency = max_concurrency

    @property
    def detail_cache(self) -> TTLCache[int, MovieDetails]:
        return self._detail_cache

    async def analyze_user_preferences(self, user_id: str) -> Preferences:
        profile = self._store.get(user_id)
        if profile is None:
            return Preferences()

        movie_ids = signal_movie_ids(profile)
        if not movie_ids:
            return profile.preferences

        movies = await self._fetch_details(movie_ids)
        derived = {
            "favorite_genres": score_genres(movies),
            "preferred_release_decades": score_decades(movies),
            "min_rating": rating_floor(movies),
        }
        logger.debug(
            "Derived preferences for %s from %s/%s movies: %s",
            user_id,
            len(movies),
            len(movie_ids),
            derived,
        )

        # Re-read after the fetches so the write below follows its read directly.
        profiles = self._store.load()
        current = profiles.get(user_id)
        if current is None:
            logger.info("Profile %s removed during analysis; not persisting", user_id)
            return profile.preferences.merged(derived)

        current.preferences = current.preferences.merged(derived)
        self._store.save(profiles)
        return current.preferences

    async def _fetch_details(self, movie_ids: Sequence[int]) -> list[MovieDetails]:
        """Fetch details concurrently; individual failures are skipped."""

        # Created per call so the limit binds to the running event loop.
        semaphore = asyncio.Semaphore(self._max_concurrency)
        results = await asyncio.gather(
            *(self._fetch_one(movie_id, semaphore) for movie_id in movie_ids),
            return_exceptions=True,
        )
        movies: list[MovieDetails] = []
        for movie_id, result in zip(movie_ids, results):
            if isinstance(result, BaseException):
                logger.warning("Failed to fetch details for movie %s: %s", movie_id, result)
                continue
            movies.append(result)
        return movies

    async def _fetch_one(
        self, movie_id: int, semaphore: asyncio.Semaphore
    ) -> MovieDetails:
        async def _fetch() -> MovieDetails:
            async with semaphore:
                return await self._catalog.fetch_by_id(movie_id)

        return await self._detail_cache.get_or_fetch(movie_id, _fetch)

    def update_preferences(self, user_id: str, changes: Mapping[str, Any]) -> Profile:
        """Merge explicit preference overrides into the stored record."""

        profiles, profile = self._store.ensure(user_id)
        profile.preferences = profile.preferences.merged(changes)
        self._store.save(profiles)
        return profile
