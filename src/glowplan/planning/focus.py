"""Rank analysis metrics into the focus areas a week should target."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

from ..analysis import PhotoAnalysis

__all__ = [
    "BUILTIN_METRICS",
    "FALLBACK_NOTES",
    "FocusCandidate",
    "MAX_FOCUS_AREAS",
    "MetricDefinition",
    "NEEDS_HELP_THRESHOLD",
    "extract_focus_candidates",
    "list_summary",
]

NEEDS_HELP_THRESHOLD = 7.0
MAX_FOCUS_AREAS = 3
FALLBACK_NOTES = "No additional notes."


@dataclass(frozen=True, slots=True)
class FocusCandidate:
    """Transient, ranked weakness derived from one analysis metric."""

    metric_key: str
    display_title: str
    category: str
    score: float
    notes: str


@dataclass(frozen=True, slots=True)
class MetricDefinition:
    """How to read one named metric out of an analysis."""

    key: str
    display_title: str
    category: str
    score: Callable[[PhotoAnalysis], float]
    notes: Callable[[PhotoAnalysis], str]


def list_summary(items: Iterable[str], *, limit: int = 2, fallback: str) -> str:
    """Join up to ``limit`` non-blank items with commas, or return ``fallback``."""
    trimmed = [item.strip() for item in items if item and item.strip()]
    if not trimmed:
        return fallback
    return ", ".join(trimmed[:limit])


def _skin_notes(analysis: PhotoAnalysis) -> str:
    highlights = list_summary(analysis.skin_concern_highlights, limit=3, fallback="")
    return "\n".join([analysis.skin_texture_description, highlights]).strip()


def _makeup_notes(analysis: PhotoAnalysis) -> str:
    return "\n".join([f"Style: {analysis.makeup_style}", analysis.makeup_feedback])


def _color_notes(analysis: PhotoAnalysis) -> str:
    return list_summary(analysis.best_colors, limit=5, fallback="Palette pending")


BUILTIN_METRICS: tuple[MetricDefinition, ...] = (
    MetricDefinition(
        key="Skin Texture",
        display_title="Skin Texture",
        category="Skin",
        score=lambda analysis: analysis.skin_texture_score,
        notes=_skin_notes,
    ),
    MetricDefinition(
        key="Eyebrow Density",
        display_title="Eyebrow Density",
        category="Brows",
        score=lambda analysis: analysis.eyebrow_density_score,
        notes=lambda analysis: analysis.eyebrow_feedback,
    ),
    MetricDefinition(
        key="Facial Harmony",
        display_title="Facial Harmony",
        category="Structure",
        score=lambda analysis: analysis.facial_harmony_score,
        notes=lambda analysis: analysis.feature_balance_description,
    ),
    MetricDefinition(
        key="Lighting Quality",
        display_title="Lighting Quality",
        category="Lighting",
        score=lambda analysis: analysis.lighting_quality,
        notes=lambda analysis: analysis.lighting_feedback,
    ),
    MetricDefinition(
        key="Makeup Suitability",
        display_title="Makeup Suitability",
        category="Makeup",
        score=lambda analysis: analysis.makeup_suitability,
        notes=_makeup_notes,
    ),
    MetricDefinition(
        key="Pose Naturalness",
        display_title="Pose Naturalness",
        category="Pose",
        score=lambda analysis: analysis.pose_naturalness,
        notes=lambda analysis: analysis.pose_feedback,
    ),
    MetricDefinition(
        key="Color Harmony",
        display_title="Color Harmony",
        category="Style",
        score=lambda analysis: analysis.color_harmony,
        notes=_color_notes,
    ),
)


def _candidate(key: str, title: str, category: str, score: float, notes: str) -> Optional[FocusCandidate]:
    if not score > 0:
        return None
    trimmed = (notes or "").strip()
    return FocusCandidate(
        metric_key=key,
        display_title=title or key,
        category=category,
        score=float(score),
        notes=trimmed or FALLBACK_NOTES,
    )


def extract_focus_candidates(
    analysis: PhotoAnalysis,
    *,
    metrics: Sequence[MetricDefinition] = BUILTIN_METRICS,
    limit: int = MAX_FOCUS_AREAS,
) -> List[FocusCandidate]:
    """Return up to ``limit`` focus candidates, worst score first.

    Only metrics scoring above zero are considered. Metrics at or below
    :data:`NEEDS_HELP_THRESHOLD` win over the rest; when nothing needs help
    the strongest-to-improve metrics are used anyway so a result is always
    produced for a scored analysis. An analysis with no positive scores
    yields an empty list.
    """
    candidates: List[FocusCandidate] = []
    for definition in metrics:
        candidate = _candidate(
            definition.key,
            definition.display_title,
            definition.category,
            definition.score(analysis),
            definition.notes(analysis),
        )
        if candidate is not None:
            candidates.append(candidate)

    known = {definition.key for definition in metrics}
    for extra in analysis.extra_metrics:
        if extra.key in known:
            continue
        candidate = _candidate(extra.key, extra.title, extra.category, extra.score, extra.notes)
        if candidate is not None:
            candidates.append(candidate)
            known.add(extra.key)

    needing_help = [candidate for candidate in candidates if candidate.score <= NEEDS_HELP_THRESHOLD]
    pool = needing_help or candidates
    ranked = sorted(pool, key=lambda candidate: candidate.score)
    return ranked[:limit]
