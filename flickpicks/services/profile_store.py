"""Local key-value persistence for user profiles."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from ..database import Database
from ..db_models import KeyValueRecord
from ..models import InteractionEvent, Profile

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "flickpicks.profiles"

# List fields whose entries are validated one by one on load, by stored key.
_ENTRY_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "favorites": TypeAdapter(int),
    "watchlist": TypeAdapter(int),
    "interactions": TypeAdapter(InteractionEvent),
    "searchHistory": TypeAdapter(str),
    "search_history": TypeAdapter(str),
}


class KeyValueStore(Protocol):
    """Minimal string store, modelled on browser ``localStorage``."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local key-value store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SQLKeyValueStore:
    """Key-value store persisted in the ``kv_store`` table."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def get_item(self, key: str) -> str | None:
        with self._database.session() as session:
            record = session.get(KeyValueRecord, key)
            return record.value if record is not None else None

    def set_item(self, key: str, value: str) -> None:
        with self._database.session() as session:
            record = session.get(KeyValueRecord, key)
            if record is None:
                session.add(KeyValueRecord(key=key, value=value))
            else:
                record.value = value

    def remove_item(self, key: str) -> None:
        with self._database.session() as session:
            record = session.get(KeyValueRecord, key)
            if record is not None:
                session.delete(record)


class ProfileStore:
    """Loads and saves the whole user -> profile map as one JSON blob.

    Reads never raise: a missing or corrupt blob degrades to an empty map,
    invalid list entries are dropped one by one and records that still fail
    validation are dropped whole. Writes are
    best-effort and report success as a boolean.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        interaction_limit: int = 100,
        search_limit: int = 20,
    ) -> None:
        self._backend = backend
        self._storage_key = storage_key
        self._interaction_limit = interaction_limit
        self._search_limit = search_limit

    @property
    def interaction_limit(self) -> int:
        return self._interaction_limit

    @property
    def search_limit(self) -> int:
        return self._search_limit

    def load(self) -> dict[str, Profile]:
        try:
            raw = self._backend.get_item(self._storage_key)
        except Exception:
            logger.exception("Failed to read stored profiles")
            return {}
        if not raw:
            return {}

        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Stored profile data is not valid JSON; ignoring it")
            return {}
        if not isinstance(payload, dict):
            logger.warning("Stored profile data has unexpected shape; ignoring it")
            return {}

        profiles: dict[str, Profile] = {}
        for user_id, record in payload.items():
            profile = self._normalize(str(user_id), record)
            if profile is not None:
                profiles[user_id] = profile
        return profiles

    def _normalize(self, user_id: str, record: Any) -> Profile | None:
        if not isinstance(record, dict):
            logger.warning("Dropping malformed profile record for %s", user_id)
            return None
        data = {**record, "id": user_id}
        for key, adapter in _ENTRY_ADAPTERS.items():
            entries = data.get(key)
            if isinstance(entries, list):
                data[key] = self._valid_entries(user_id, key, entries, adapter)
        try:
            profile = Profile.model_validate(data)
        except ValidationError as exc:
            logger.warning("Dropping invalid profile record for %s: %s", user_id, exc)
            return None
        return profile.normalized(
            interaction_limit=self._interaction_limit,
            search_limit=self._search_limit,
        )

    @staticmethod
    def _valid_entries(
        user_id: str, key: str, entries: list[Any], adapter: TypeAdapter[Any]
    ) -> list[Any]:
        valid: list[Any] = []
        for entry in entries:
            try:
                valid.append(adapter.validate_python(entry))
            except ValidationError:
                logger.warning("Dropping invalid %s entry for %s: %r", key, user_id, entry)
        return valid

    def save(self, profiles: dict[str, Profile]) -> bool:
        try:
            payload = {
                user_id: profile.to_storage() for user_id, profile in profiles.items()
            }
            self._backend.set_item(self._storage_key, json.dumps(payload))
        except Exception:
            logger.exception("Failed to save profile data")
            return False
        return True

    def clear(self, user_id: str) -> None:
        """Remove one user's profile."""

        profiles = self.load()
        if profiles.pop(user_id, None) is not None:
            self.save(profiles)

    def clear_all(self) -> None:
        try:
            self._backend.remove_item(self._storage_key)
        except Exception:
            logger.exception("Failed to clear stored profiles")

    def get(self, user_id: str) -> Profile | None:
        """Return a stored profile without creating one."""

        return self.load().get(user_id)

    def ensure(self, user_id: str) -> tuple[dict[str, Profile], Profile]:
        """Return the full map and the user's profile, creating it if absent."""

        profiles = self.load()
        profile = profiles.get(user_id)
        if profile is None:
            logger.info("Creating profile for %s", user_id)
            profile = Profile.new(user_id)
            profiles[user_id] = profile
            self.save(profiles)
        return profiles, profile
