"""FlickPicks movie personalization engine."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["PersonalizationService", "personalization_context"]

_EXPORTS = {
    "PersonalizationService": "flickpicks.services.personalization",
    "personalization_context": "flickpicks.main",
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name])
        return getattr(module, name)
    raise AttributeError(f"module 'flickpicks' has no attribute {name}")
