"""
Roadmap planning: focus extraction, task composition, week building, progression.
"""

from importlib import import_module
from typing import Any

_EXPORTS = {
    "FocusCandidate": "glowplan.planning.focus",
    "extract_focus_candidates": "glowplan.planning.focus",
    "compose_tasks": "glowplan.planning.composer",
    "WeekDraft": "glowplan.planning.weeks",
    "build_week": "glowplan.planning.weeks",
    "plan_week": "glowplan.planning.weeks",
    "AdvanceOutcome": "glowplan.planning.progression",
    "ProgressionController": "glowplan.planning.progression",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> Any:
    """Lazily import planning helpers so the leaf modules stay import-cheap."""
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name])
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
