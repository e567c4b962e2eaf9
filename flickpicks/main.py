"""Wiring for the personalization engine and its collaborators."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator

import httpx

from .config import Settings, get_settings
from .database import Database
from .services.personalization import PersonalizationService
from .services.profile_store import ProfileStore, SQLKeyValueStore
from .services.tmdb import TMDBClient

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level)


def build_profile_store(settings: Settings, database: Database) -> ProfileStore:
    return ProfileStore(
        SQLKeyValueStore(database),
        storage_key=settings.profile_storage_key,
        interaction_limit=settings.interaction_history_limit,
        search_limit=settings.search_history_limit,
    )


@asynccontextmanager
async def personalization_context(
    settings: Settings | None = None,
) -> AsyncIterator[PersonalizationService]:
    """Yield a ready ``PersonalizationService``; resources close on exit."""

    settings = settings or get_settings()
    configure_logging(settings)

    async with AsyncExitStack() as exit_stack:
        tmdb_http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=str(settings.tmdb_api_url),
                timeout=httpx.Timeout(20.0, connect=10.0),
            )
        )
        database = Database(settings.database_url)
        exit_stack.callback(database.dispose)
        database.create_all()

        catalog = TMDBClient(settings, tmdb_http_client)
        store = build_profile_store(settings, database)
        service = PersonalizationService(settings, store, catalog)
        logger.info("%s personalization engine ready", settings.app_name)

        yield service
