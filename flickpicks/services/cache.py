"""Time-bounded read-through cache."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Clock = Callable[[], float]


@dataclass(slots=True)
class CacheEntry(Generic[V]):
    value: V
    stored_at: float


class TTLCache(Generic[K, V]):
    """Mapping of key -> (value, fetch time) with a freshness window.

    The clock is injectable so expiry can be driven deterministically in tests.
    A TTL of zero disables caching entirely.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Clock = time.monotonic,
        name: str = "cache",
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be non-negative")
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._name = name
        self._entries: dict[K, CacheEntry[V]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def _is_fresh(self, entry: CacheEntry[V]) -> bool:
        return (self._clock() - entry.stored_at) < self._ttl

    def get(self, key: K) -> V | None:
        """Return the cached value when present and fresh."""

        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self._is_fresh(entry):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: K, value: V) -> None:
        if self._ttl <= 0:
            return
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def invalidate(self, key: K) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_fetch(self, key: K, fetcher: Callable[[], Awaitable[V]]) -> V:
        """Return a fresh cached value, or await ``fetcher`` and store its result.

        Exceptions raised by ``fetcher`` propagate and leave the cache untouched.
        """

        cached = self.get(key)
        if cached is not None:
            logger.debug("%s hit for %s", self._name, key)
            return cached
        logger.debug("%s miss for %s", self._name, key)
        value = await fetcher()
        self.set(key, value)
        return value
