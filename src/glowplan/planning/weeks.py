"""Assemble one roadmap week from ranked focus areas."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..analysis import PhotoAnalysis
from .composer import compose_tasks
from .focus import FocusCandidate, extract_focus_candidates

__all__ = [
    "MAX_TASKS_PER_WEEK",
    "PlannedTask",
    "WeekDraft",
    "build_fallback_week",
    "build_week",
    "focus_list_summary",
    "plan_week",
]

MAX_TASKS_PER_WEEK = 6


@dataclass(slots=True)
class PlannedTask:
    """Task copy plus the bookkeeping the store needs."""

    title: str
    category: str
    timeframe: str
    priority: int
    context: str
    body: str = ""
    product_suggestions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.body.strip():
            self.body = fallback_body(self.context)


@dataclass(slots=True)
class WeekDraft:
    """A week ready to be persisted."""

    number: int
    title: str
    summary: str
    tasks: List[PlannedTask] = field(default_factory=list)
    focus_keys: tuple[str, ...] = ()

    @property
    def is_maintenance(self) -> bool:
        return not self.focus_keys


def fallback_body(context: str) -> str:
    return (
        f"Here's your focus: \n{context}\n\n"
        "Start with consistent, gentle improvements this week and reassess in 4 weeks."
    )


def focus_list_summary(items: Sequence[str]) -> str:
    """Join names as ``"A"``, ``"A, and B"`` or ``"A, B, and C"``."""
    if not items:
        return "your overall glow"
    if len(items) == 1:
        return items[0]
    head = ", ".join(items[:-1])
    return f"{head}, and {items[-1]}"


def _task_context(candidate: FocusCandidate) -> str:
    return f"Focus: {candidate.display_title}\nScore: {candidate.score:.1f}\nNotes: {candidate.notes}"


def build_week(
    number: int,
    candidates: Sequence[FocusCandidate],
    analysis: PhotoAnalysis,
    *,
    max_tasks: int = MAX_TASKS_PER_WEEK,
) -> WeekDraft:
    """Build week ``number`` around ``candidates`` (worst first).

    Tasks are appended candidate by candidate with sequential priorities and
    the list stops at ``max_tasks`` even part-way through a candidate. With
    no candidates the maintenance week is returned instead.
    """
    if not candidates:
        return build_fallback_week(number)

    primary = candidates[0].display_title
    focus_list = focus_list_summary([candidate.display_title for candidate in candidates])
    week = WeekDraft(
        number=number,
        title=f"Week {number}: {primary} Sprint",
        summary=(
            f"This week zeroes in on {focus_list}. Finish every move, then rescan in seven days "
            "to unlock the next plan."
        ),
        focus_keys=tuple(candidate.metric_key for candidate in candidates),
    )

    for candidate in candidates:
        context = _task_context(candidate)
        for draft in compose_tasks(candidate, analysis):
            if len(week.tasks) >= max_tasks:
                return week
            week.tasks.append(
                PlannedTask(
                    title=draft.title,
                    category=candidate.category,
                    timeframe=draft.timeframe,
                    priority=len(week.tasks) + 1,
                    context=context,
                    body=draft.body,
                    product_suggestions=draft.product_suggestions,
                )
            )
    return week


def build_fallback_week(number: int) -> WeekDraft:
    """Canned maintenance week used when no metric qualifies for focus."""
    week = WeekDraft(
        number=number,
        title=f"Week {number}: Glow Momentum",
        summary=(
            "Your analysis looks balanced. Use this maintenance checklist, then rescan in seven days "
            "to build the next stage."
        ),
    )
    week.tasks.extend(
        [
            PlannedTask(
                title="Daily glow check",
                category="Lifestyle",
                timeframe="Each morning",
                priority=1,
                context="Fallback plan",
                body=(
                    "Face a window, take a 30-second selfie video, and note hydration, lighting, and "
                    "energy. Drink a glass of water and apply SPF 30+ before leaving the house."
                ),
                product_suggestions=(
                    "Search 'daily SPF dewy finish'",
                    "Search 'habit tracker water intake'",
                ),
            ),
            PlannedTask(
                title="Mid-week refresh",
                category="Lifestyle",
                timeframe="Every Wednesday",
                priority=2,
                context="Fallback plan",
                body=(
                    "Clean makeup brushes, swap your pillowcase, and plan outfits pulling from your "
                    "three best colors. These micro resets prevent dullness from creeping back."
                ),
                product_suggestions=(
                    "Search 'silk pillowcase benefits skin'",
                    "Search 'how to clean makeup brushes fast'",
                ),
            ),
            PlannedTask(
                title="Weekend highlight session",
                category="Lifestyle",
                timeframe="Every Sunday",
                priority=3,
                context="Fallback plan",
                body=(
                    "Spend 15 minutes practicing a new lighting setup or pose, capture 5 shots, and "
                    "save the favorite to track improvements week over week."
                ),
                product_suggestions=("Search 'at-home portrait lighting tips'",),
            ),
        ]
    )
    return week


def plan_week(number: int, analysis: Optional[PhotoAnalysis]) -> WeekDraft:
    """Extract focus areas from ``analysis`` and build week ``number``."""
    if analysis is None:
        return build_fallback_week(number)
    week = build_week(number, extract_focus_candidates(analysis), analysis)
    if not week.tasks:
        return build_fallback_week(number)
    return week
