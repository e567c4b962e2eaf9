"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, cast


# Ensure the package is importable when running tests without an editable
# install. This mirrors the expected runtime layout where ``flickpicks`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402

from flickpicks.config import Settings  # noqa: E402
from flickpicks.models import DiscoverQuery, MovieDetails, MoviesPage  # noqa: E402
from flickpicks.services.personalization import PersonalizationService  # noqa: E402
from flickpicks.services.profile_store import MemoryKeyValueStore, ProfileStore  # noqa: E402
from flickpicks.services.tmdb import TMDBClient, TMDBError  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


def build_settings(**overrides: Any) -> Settings:
    """Return a settings object with defaults suitable for tests."""

    base: dict[str, Any] = {"TMDB_API_KEY": "test-key"}
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


def popular_page(count: int = 20) -> MoviesPage:
    return MoviesPage.model_validate(
        {
            "page": 1,
            "results": [{"id": index + 1, "title": f"M{index + 1}"} for index in range(count)],
            "total_pages": 1,
            "total_results": count,
        }
    )


class FakeCatalog:
    """In-memory stand-in for ``TMDBClient`` recording every call."""

    def __init__(
        self,
        details: dict[int, dict[str, Any]] | None = None,
        *,
        popular: MoviesPage | None = None,
        discover_results: MoviesPage | None = None,
        failing_ids: set[int] | None = None,
        discover_error: Exception | None = None,
    ) -> None:
        self.details = details or {}
        self.popular = popular or popular_page()
        self.discover_results = discover_results or MoviesPage()
        self.failing_ids = failing_ids or set()
        self.discover_error = discover_error
        self.detail_calls: list[int] = []
        self.category_calls: list[tuple[str, int]] = []
        self.discover_calls: list[DiscoverQuery] = []

    async def fetch_by_id(self, movie_id: int) -> MovieDetails:
        self.detail_calls.append(movie_id)
        if movie_id in self.failing_ids or movie_id not in self.details:
            raise TMDBError("not found", path=f"/movie/{movie_id}", status_code=404)
        return MovieDetails.model_validate({"id": movie_id, **self.details[movie_id]})

    async def fetch_by_category(self, category: str, page: int = 1) -> MoviesPage:
        self.category_calls.append((category, page))
        return self.popular

    async def discover(self, query: DiscoverQuery) -> MoviesPage:
        self.discover_calls.append(query)
        if self.discover_error is not None:
            raise self.discover_error
        return self.discover_results


class FailingBackend(MemoryKeyValueStore):
    """Key-value backend whose writes always fail, like a full quota."""

    def set_item(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")


@pytest.fixture
def store() -> ProfileStore:
    return ProfileStore(MemoryKeyValueStore())


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


class Clock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


def build_service(
    store: ProfileStore, catalog: FakeCatalog, **overrides: Any
) -> PersonalizationService:
    return PersonalizationService(
        build_settings(**overrides),
        store,
        cast(TMDBClient, catalog),
        clock_ms=Clock(),
    )


@pytest.fixture
def service(store: ProfileStore, catalog: FakeCatalog) -> PersonalizationService:
    return build_service(store, catalog)
