"""Client for The Movie Database (TMDB) catalog endpoints."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import Settings
from ..models import DiscoverQuery, MovieCredits, MovieDetails, MoviesPage
from .cache import TTLCache

logger = logging.getLogger(__name__)

MOVIE_CATEGORIES: tuple[str, ...] = ("popular", "now_playing", "top_rated", "upcoming")

ModelT = TypeVar("ModelT", bound=BaseModel)


class TMDBError(Exception):
    """Raised when a catalog request fails or returns an unusable payload."""

    def __init__(self, message: str, *, path: str, status_code: int | None = None):
        super().__init__(message)
        self.path = path
        self.status_code = status_code


class TMDBClient:
    """Async catalog client with a cache-aside response cache."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        *,
        response_cache: TTLCache[str, BaseModel] | None = None,
    ):
        if not settings.has_tmdb_credentials:
            raise ValueError(
                "TMDB API key or access token is required when initialising TMDBClient"
            )
        self._settings = settings
        self._client = http_client
        if response_cache is None:
            response_cache = TTLCache(
                settings.response_cache_seconds, name="tmdb response cache"
            )
        self._cache: TTLCache[str, BaseModel] = response_cache

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._settings.tmdb_access_token:
            headers["Authorization"] = f"Bearer {self._settings.tmdb_access_token}"
        return headers

    def _params(self, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"language": self._settings.tmdb_language}
        if self._settings.tmdb_api_key:
            params["api_key"] = self._settings.tmdb_api_key
        if extra:
            params.update(extra)
        return params

    async def fetch_by_category(self, category: str, page: int = 1) -> MoviesPage:
        """Return one page of a curated movie list such as ``popular``."""

        if category not in MOVIE_CATEGORIES:
            raise ValueError(f"Unsupported movie category: {category}")
        return await self._cached_get(
            f"{category}_{page}",
            f"/movie/{category}",
            MoviesPage,
            params={"page": page},
        )

    async def fetch_by_id(self, movie_id: int) -> MovieDetails:
        return await self._cached_get(
            f"movie_{movie_id}", f"/movie/{movie_id}", MovieDetails
        )

    async def fetch_credits(self, movie_id: int) -> MovieCredits:
        return await self._cached_get(
            f"credits_{movie_id}", f"/movie/{movie_id}/credits", MovieCredits
        )

    async def search(self, query: str, page: int = 1) -> MoviesPage:
        """Search movies by title."""

        normalized = (query or "").strip()
        if not normalized:
            return MoviesPage(page=page)
        return await self._cached_get(
            f"search_{normalized}_{page}",
            "/search/movie",
            MoviesPage,
            params={"query": normalized, "page": page, "include_adult": "false"},
        )

    async def discover(self, query: DiscoverQuery) -> MoviesPage:
        """Run a filtered discovery listing. Results are not cached."""

        return await self._get("/discover/movie", MoviesPage, params=query.to_params())

    async def _cached_get(
        self,
        cache_key: str,
        path: str,
        model: type[ModelT],
        *,
        params: dict[str, Any] | None = None,
    ) -> ModelT:
        async def _fetch() -> ModelT:
            return await self._get(path, model, params=params)

        return await self._cache.get_or_fetch(cache_key, _fetch)  # type: ignore[return-value]

    async def _get(
        self,
        path: str,
        model: type[ModelT],
        *,
        params: dict[str, Any] | None = None,
    ) -> ModelT:
        try:
            response = await self._client.get(
                path, params=self._params(params), headers=self._headers()
            )
        except httpx.HTTPError as exc:
            logger.warning("TMDB request to %s failed: %s", path, exc)
            raise TMDBError(f"Request to {path} failed: {exc}", path=path) from exc

        if response.status_code >= 400:
            logger.warning(
                "TMDB request to %s returned %s: %s",
                path,
                response.status_code,
                response.text,
            )
            raise TMDBError(
                f"TMDB responded with {response.status_code} for {path}",
                path=path,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Unexpected non-JSON TMDB response for %s", path)
            raise TMDBError(f"Non-JSON response for {path}", path=path) from exc

        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Unexpected TMDB response structure for %s", path)
            raise TMDBError(f"Malformed response for {path}", path=path) from exc
