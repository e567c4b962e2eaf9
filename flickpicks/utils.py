"""Utility helpers for the FlickPicks personalization engine."""

from __future__ import annotations

import re
import time
from collections import Counter
from typing import Hashable, Iterable, TypeVar

K = TypeVar("K", bound=Hashable)

YEAR_PREFIX_RE = re.compile(r"^\s*(\d{4})")


def normalize_query(value: str | None) -> str:
    """Return the canonical form of a search query."""

    return (value or "").strip().lower()


def parse_year(value: object) -> int | None:
    """Extract the year from a ``YYYY-MM-DD`` style release date."""

    if isinstance(value, int):
        return value if 1800 <= value <= 2200 else None
    if not isinstance(value, str):
        return None
    match = YEAR_PREFIX_RE.match(value)
    if not match:
        return None
    year = int(match.group(1))
    if not 1800 <= year <= 2200:
        return None
    return year


def decade_of(release_date: object) -> int | None:
    """Return the decade start year (``2001-05-20`` -> ``2000``)."""

    year = parse_year(release_date)
    if year is None:
        return None
    return (year // 10) * 10


def rank_by_frequency(values: Iterable[K], limit: int) -> list[K]:
    """Return the ``limit`` most frequent values.

    Ties keep the order in which values were first encountered, since
    ``Counter`` preserves insertion order and ``most_common`` sorts stably.
    """

    counts: Counter[K] = Counter(values)
    return [value for value, _ in counts.most_common(limit)]


def dedupe(values: Iterable[K]) -> list[K]:
    """Drop repeated values while keeping first-seen order."""

    return list(dict.fromkeys(values))


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""

    return int(time.time() * 1000)
