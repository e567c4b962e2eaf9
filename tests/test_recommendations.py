"""Tests for the recommendation generator."""

from __future__ import annotations

import pytest

from flickpicks.models import MoviesPage, Preferences
from flickpicks.services.profile_store import ProfileStore
from flickpicks.services.recommendations import build_discover_query
from flickpicks.services.tmdb import TMDBError

from conftest import FakeCatalog, build_service, popular_page


def _discover_page(count: int) -> MoviesPage:
    return MoviesPage.model_validate(
        {"results": [{"id": 1000 + index, "title": f"D{index}"} for index in range(count)]}
    )


class BrokenPopularCatalog(FakeCatalog):
    async def fetch_by_category(self, category: str, page: int = 1) -> MoviesPage:
        self.category_calls.append((category, page))
        raise TMDBError("offline", path="/movie/popular")


@pytest.mark.anyio("asyncio")
async def test_unknown_user_gets_empty_list(store: ProfileStore, catalog: FakeCatalog) -> None:
    service = build_service(store, catalog)

    assert await service.get_personalized_recommendations("ghost") == []
    assert catalog.category_calls == []
    assert store.get("ghost") is None


@pytest.mark.anyio("asyncio")
async def test_cold_start_returns_first_twelve_popular(store: ProfileStore, catalog: FakeCatalog) -> None:
    service = build_service(store, catalog)
    service.ensure_profile("u1")

    movies = await service.get_personalized_recommendations("u1")

    assert [movie.id for movie in movies] == list(range(1, 13))
    assert catalog.category_calls == [("popular", 1)]
    assert catalog.discover_calls == []


@pytest.mark.anyio("asyncio")
async def test_personalized_query_uses_genres_and_top_decade(store: ProfileStore) -> None:
    catalog = FakeCatalog(
        {
            101: {"genres": [{"id": 18, "name": "Drama"}], "release_date": "2001-05-20", "vote_average": 8.2},
            102: {
                "genres": [{"id": 18, "name": "Drama"}, {"id": 28, "name": "Action"}],
                "release_date": "2004-03-03",
                "vote_average": 7.1,
            },
        },
        discover_results=_discover_page(25),
    )
    service = build_service(store, catalog)
    service.track_click("u1", 101)
    service.toggle_favorite("u1", 102)

    movies = await service.get_personalized_recommendations("u1")

    assert [movie.id for movie in movies] == [1000 + index for index in range(20)]
    assert len(catalog.discover_calls) == 1
    params = catalog.discover_calls[0].to_params()
    assert params["sort_by"] == "popularity.desc"
    assert params["with_genres"] == "18,28"
    assert params["vote_average.gte"] == 7
    assert params["primary_release_date.gte"] == "2000-01-01"
    assert params["primary_release_date.lte"] == "2009-12-31"
    assert catalog.category_calls == []


@pytest.mark.anyio("asyncio")
async def test_stored_preferences_are_used_without_interactions(store: ProfileStore) -> None:
    catalog = FakeCatalog(discover_results=_discover_page(3))
    service = build_service(store, catalog)
    service.update_preferences("u1", {"favoriteGenres": [878]})

    movies = await service.get_personalized_recommendations("u1")

    assert [movie.id for movie in movies] == [1000, 1001, 1002]
    params = catalog.discover_calls[0].to_params()
    assert params["with_genres"] == "878"
    assert params["vote_average.gte"] == 6
    assert "primary_release_date.gte" not in params
    assert catalog.detail_calls == []


@pytest.mark.anyio("asyncio")
async def test_discover_failure_falls_back_to_popular(store: ProfileStore) -> None:
    catalog = FakeCatalog(
        {7: {"genre_ids": [53], "release_date": "2015-01-01", "vote_average": 7.0}},
        discover_error=TMDBError("boom", path="/discover/movie", status_code=500),
    )
    service = build_service(store, catalog)
    service.track_click("u1", 7)

    movies = await service.get_personalized_recommendations("u1")

    assert [movie.id for movie in movies] == [movie.id for movie in popular_page().results[:12]]
    assert len(catalog.discover_calls) == 1


@pytest.mark.anyio("asyncio")
async def test_unexpected_errors_also_fall_back(store: ProfileStore) -> None:
    catalog = FakeCatalog(
        {7: {"genre_ids": [53]}},
        discover_error=KeyError("results"),
    )
    service = build_service(store, catalog)
    service.track_click("u1", 7)

    movies = await service.get_personalized_recommendations("u1")

    assert len(movies) == 12


@pytest.mark.anyio("asyncio")
async def test_failed_popular_fallback_returns_empty_list(store: ProfileStore) -> None:
    catalog = BrokenPopularCatalog()
    service = build_service(store, catalog)
    service.ensure_profile("u1")

    assert await service.get_personalized_recommendations("u1") == []


@pytest.mark.anyio("asyncio")
async def test_fallback_count_is_configurable(store: ProfileStore) -> None:
    catalog = FakeCatalog(popular=popular_page(8))
    service = build_service(store, catalog, FALLBACK_RECOMMENDATION_COUNT=5)
    service.ensure_profile("u1")

    movies = await service.get_personalized_recommendations("u1")

    assert [movie.id for movie in movies] == [1, 2, 3, 4, 5]


def test_build_discover_query_only_narrows_to_first_decade() -> None:
    query = build_discover_query(
        Preferences(favorite_genres=[18], preferred_release_decades=[1990, 2000, 1980], min_rating=7)
    )

    assert query.release_date_gte == "1990-01-01"
    assert query.release_date_lte == "1999-12-31"
    assert query.genres == [18]
    assert query.min_rating == 7
