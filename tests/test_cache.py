"""Tests for the TTL read-through cache."""

from __future__ import annotations

import pytest

from flickpicks.services.cache import TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache: TTLCache[int, str] = TTLCache(10, clock=clock)
    cache.set(1, "a")

    clock.now = 9.9
    assert cache.get(1) == "a"

    clock.now = 10.0
    assert cache.get(1) is None
    assert len(cache) == 0


def test_zero_ttl_disables_caching() -> None:
    cache: TTLCache[int, str] = TTLCache(0)
    cache.set(1, "a")

    assert cache.get(1) is None


def test_negative_ttl_is_rejected() -> None:
    with pytest.raises(ValueError):
        TTLCache(-1)


@pytest.mark.anyio("asyncio")
async def test_get_or_fetch_reads_through_once_within_window() -> None:
    clock = FakeClock()
    cache: TTLCache[int, str] = TTLCache(24 * 60 * 60, clock=clock)
    calls: list[int] = []

    async def fetch() -> str:
        calls.append(1)
        return f"value-{len(calls)}"

    assert await cache.get_or_fetch(7, fetch) == "value-1"
    clock.now = 60.0
    assert await cache.get_or_fetch(7, fetch) == "value-1"
    assert len(calls) == 1

    clock.now = 24 * 60 * 60 + 1
    assert await cache.get_or_fetch(7, fetch) == "value-2"
    assert len(calls) == 2


@pytest.mark.anyio("asyncio")
async def test_get_or_fetch_does_not_cache_failures() -> None:
    cache: TTLCache[int, str] = TTLCache(60)

    async def boom() -> str:
        raise RuntimeError("offline")

    with pytest.raises(RuntimeError):
        await cache.get_or_fetch(1, boom)
    assert 1 not in cache


def test_invalidate_and_clear() -> None:
    cache: TTLCache[str, int] = TTLCache(60)
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert len(cache) == 0
