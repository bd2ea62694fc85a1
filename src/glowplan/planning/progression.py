"""State machine that decides when a roadmap may grow by another week."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..analysis import PhotoAnalysis
from ..memory.schema import Plan, Task, Week, completion_ratio, utc_now, week_is_complete
from ..memory.store import RoadmapStore
from ..reminders import (
    ReminderSink,
    RoadmapEvent,
    RoadmapEventKind,
    dispatch_event,
    next_check_in,
    next_rescan,
)
from .weeks import WeekDraft, plan_week

__all__ = [
    "AdvanceOutcome",
    "DEFAULT_COOLDOWN",
    "DEFAULT_OWNER",
    "IncompleteWeek",
    "PlanSnapshot",
    "ProgressionController",
    "RoadmapError",
    "RoadmapState",
    "TaskNotFoundError",
    "WaitingPeriod",
    "WeekSnapshot",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_OWNER = "local"
DEFAULT_COOLDOWN = timedelta(days=7)


class RoadmapError(RuntimeError):
    """Base error for roadmap operations that cannot be completed."""


class TaskNotFoundError(RoadmapError):
    """Raised when a task id does not exist in the owner's plan."""


class RoadmapState(str, Enum):
    """Progression states, derived from stored records and never persisted."""

    NO_PLAN = "NO_PLAN"
    WEEK_IN_PROGRESS = "WEEK_IN_PROGRESS"
    WEEK_COMPLETE_WAITING = "WEEK_COMPLETE_WAITING"
    WEEK_COMPLETE_READY = "WEEK_COMPLETE_READY"


@dataclass(frozen=True, slots=True)
class IncompleteWeek:
    """Advance refused because the active week still has open tasks."""

    week_number: int
    completed: int
    total: int

    @property
    def progress(self) -> float:
        if self.total == 0:
            return 0.0
        return self.completed / self.total

    def message(self) -> str:
        percent = round(self.progress * 100)
        return f"Complete every task to unlock Week {self.week_number + 1} ({percent}% done)."


@dataclass(frozen=True, slots=True)
class WaitingPeriod:
    """Advance refused because the cooldown since the week unlocked has not elapsed."""

    week_number: int
    next_unlock_at: datetime

    def days_remaining(self, now: datetime) -> int:
        remaining = (self.next_unlock_at - now).total_seconds()
        return max(0, math.ceil(remaining / 86400))

    def message(self, now: Optional[datetime] = None) -> str:
        text = f"Next week unlocks on {self.next_unlock_at:%B %d, %Y}."
        if now is not None:
            days = self.days_remaining(now)
            unit = "day" if days == 1 else "days"
            text = f"{text} Come back in {days} {unit}."
        return text


AdvanceReason = Union[IncompleteWeek, WaitingPeriod]


@dataclass(slots=True)
class AdvanceOutcome:
    """Result of an advance request; ``reason`` is set only when nothing was added."""

    added_new_week: bool
    current_week: int
    plan_exists: bool = True
    reason: Optional[AdvanceReason] = None
    week: Optional[Week] = None


@dataclass(slots=True)
class WeekSnapshot:
    id: str
    number: int
    title: str
    summary: str
    progress: float
    is_completed: bool
    is_current: bool
    unlocked_at: datetime
    completed_at: Optional[datetime] = None
    next_unlock_at: Optional[datetime] = None
    tasks: List[Task] = field(default_factory=list)


@dataclass(slots=True)
class PlanSnapshot:
    """Read model handed to the presentation layer."""

    exists: bool
    current_week: int = 0
    overall_progress: float = 0.0
    completed_tasks: int = 0
    total_tasks: int = 0
    headline: str = "Generate your roadmap"
    weeks: List[WeekSnapshot] = field(default_factory=list)
    plan: Optional[Plan] = None

    @property
    def active_week(self) -> Optional[WeekSnapshot]:
        for week in self.weeks:
            if week.is_current:
                return week
        return None


def _headline(current_week: int, completed: int, total: int) -> str:
    summary = "No tasks yet" if total == 0 else f"{completed} of {total} tasks complete"
    return f"Week {max(1, current_week)} • {summary}"


class ProgressionController:
    """Create, extend, and gate an owner's roadmap.

    Every entry point runs under a per-owner lock and performs its
    read-decide-write sequence inside one store transaction, so a double
    submit cannot append two weeks. Reminder sinks are notified only after
    the transaction commits.
    """

    def __init__(
        self,
        store: RoadmapStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        sinks: Iterable[ReminderSink] = (),
    ) -> None:
        self.store = store
        self.clock = clock
        self.cooldown = cooldown
        self.sinks: List[ReminderSink] = list(sinks)
        self._owner_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, owner_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._owner_locks.get(owner_id)
            if lock is None:
                lock = threading.Lock()
                self._owner_locks[owner_id] = lock
            return lock

    # Reads ---------------------------------------------------------------------------
    def _load(self, owner_id: str) -> Tuple[Optional[Plan], List[Week]]:
        plan = self.store.get_plan_for_owner(owner_id)
        if plan is None:
            return None, []
        return plan, self.store.list_weeks(plan.id)

    @staticmethod
    def _current_week_number(plan: Plan, weeks: List[Week]) -> int:
        highest = max((week.week_number for week in weeks), default=1)
        current = max(plan.current_week_number, highest)
        if weeks and current != plan.current_week_number:
            LOGGER.warning(
                "Plan %s week pointer %d behind stored week %d; using %d",
                plan.id,
                plan.current_week_number,
                highest,
                current,
            )
        return current

    def state(self, owner_id: str = DEFAULT_OWNER) -> RoadmapState:
        """Return the progression state the next :meth:`advance` would act on."""
        plan, weeks = self._load(owner_id)
        if plan is None or not weeks:
            return RoadmapState.NO_PLAN
        active = weeks[-1]
        if not week_is_complete(self.store.list_tasks(active.id)):
            return RoadmapState.WEEK_IN_PROGRESS
        if self.clock() < active.unlocked_at + self.cooldown:
            return RoadmapState.WEEK_COMPLETE_WAITING
        return RoadmapState.WEEK_COMPLETE_READY

    def get_current_state(self, owner_id: str = DEFAULT_OWNER) -> PlanSnapshot:
        """Summarise the owner's plan, weeks, and task progress."""
        with self._lock_for(owner_id):
            plan, weeks = self._load(owner_id)
            if plan is None or not weeks:
                return PlanSnapshot(exists=False)

            current = self._current_week_number(plan, weeks)
            snapshots: List[WeekSnapshot] = []
            completed_total = 0
            task_total = 0
            for week in weeks:
                tasks = self.store.list_tasks(week.id)
                done = sum(1 for task in tasks if task.is_completed)
                completed_total += done
                task_total += len(tasks)
                is_completed = week_is_complete(tasks)
                is_current = week is weeks[-1]
                snapshots.append(
                    WeekSnapshot(
                        id=week.id,
                        number=week.week_number,
                        title=week.title,
                        summary=week.summary,
                        progress=completion_ratio(tasks),
                        is_completed=is_completed,
                        is_current=is_current,
                        unlocked_at=week.unlocked_at,
                        completed_at=week.completed_at,
                        next_unlock_at=(
                            week.unlocked_at + self.cooldown if is_current and is_completed else None
                        ),
                        tasks=tasks,
                    )
                )

        overall = completed_total / task_total if task_total else 0.0
        return PlanSnapshot(
            exists=True,
            current_week=current,
            overall_progress=overall,
            completed_tasks=completed_total,
            total_tasks=task_total,
            headline=_headline(current, completed_total, task_total),
            weeks=snapshots,
            plan=plan,
        )

    # Writes --------------------------------------------------------------------------
    def advance(
        self,
        owner_id: str = DEFAULT_OWNER,
        analysis: Optional[PhotoAnalysis] = None,
        source_id: Optional[str] = None,
    ) -> AdvanceOutcome:
        """Create the plan, append the next week, or explain why not.

        Rejections (:class:`IncompleteWeek`, :class:`WaitingPeriod`) are
        returned in ``reason``. Storage failures raise
        :class:`~glowplan.memory.store.StoreError` with nothing committed.
        """
        if analysis is None:
            analysis = PhotoAnalysis.empty()
        stamp = source_id if source_id is not None else analysis.id

        with self._lock_for(owner_id):
            now = self.clock()
            with self.store.transaction():
                outcome = self._advance_locked(owner_id, analysis, stamp, now)

        if outcome.added_new_week and outcome.week is not None:
            LOGGER.info("Unlocked week %d for %s", outcome.current_week, owner_id)
            self._emit(
                RoadmapEvent(
                    kind=RoadmapEventKind.WEEK_UNLOCKED,
                    owner_id=owner_id,
                    week_number=outcome.current_week,
                    occurred_at=now,
                    remind_at=next_check_in(now),
                )
            )
            self._emit(
                RoadmapEvent(
                    kind=RoadmapEventKind.RESCAN_DUE,
                    owner_id=owner_id,
                    week_number=outcome.current_week,
                    occurred_at=now,
                    remind_at=next_rescan(now),
                )
            )
        return outcome

    def _advance_locked(
        self,
        owner_id: str,
        analysis: PhotoAnalysis,
        stamp: Optional[str],
        now: datetime,
    ) -> AdvanceOutcome:
        plan, weeks = self._load(owner_id)

        if plan is None:
            plan = Plan(owner_id=owner_id, source_analysis_id=stamp, created_at=now, last_updated_at=now)
            self.store.save_plan(plan)
            LOGGER.info("Created roadmap plan %s for %s", plan.id, owner_id)
        elif not weeks:
            LOGGER.warning("Plan %s has no weeks; rebuilding week 1", plan.id)

        if not weeks:
            week = self._append_week(plan, plan_week(1, analysis), stamp, now)
            return AdvanceOutcome(added_new_week=True, current_week=1, week=week)

        current = self._current_week_number(plan, weeks)
        active = weeks[-1]
        tasks = self.store.list_tasks(active.id)

        if not week_is_complete(tasks):
            done = sum(1 for task in tasks if task.is_completed)
            return AdvanceOutcome(
                added_new_week=False,
                current_week=current,
                reason=IncompleteWeek(week_number=active.week_number, completed=done, total=len(tasks)),
            )

        next_unlock_at = active.unlocked_at + self.cooldown
        if now < next_unlock_at:
            return AdvanceOutcome(
                added_new_week=False,
                current_week=current,
                reason=WaitingPeriod(week_number=active.week_number, next_unlock_at=next_unlock_at),
            )

        next_number = active.week_number + 1
        week = self._append_week(plan, plan_week(next_number, analysis), stamp, now)
        return AdvanceOutcome(added_new_week=True, current_week=next_number, week=week)

    def _append_week(
        self,
        plan: Plan,
        draft: WeekDraft,
        stamp: Optional[str],
        now: datetime,
    ) -> Week:
        week = Week(
            plan_id=plan.id,
            week_number=draft.number,
            title=draft.title,
            summary=draft.summary,
            unlocked_at=now,
        )
        tasks = [
            Task(
                week_id=week.id,
                title=item.title,
                body=item.body,
                category=item.category,
                timeframe=item.timeframe,
                priority=item.priority,
                product_suggestions=list(item.product_suggestions),
                context=item.context,
            )
            for item in draft.tasks
        ]
        self.store.add_week(week, tasks)
        self.store.save_plan(
            plan.model_copy(
                update={
                    "current_week_number": draft.number,
                    "last_updated_at": now,
                    "source_analysis_id": stamp if stamp is not None else plan.source_analysis_id,
                }
            )
        )
        return week

    def toggle_task_completion(self, owner_id: str, task_id: str) -> Task:
        """Flip a task's completion flag and refresh its week's completion time."""
        with self._lock_for(owner_id):
            now = self.clock()
            with self.store.transaction():
                task = self.store.get_task(task_id)
                week = self.store.get_week(task.week_id) if task else None
                plan = self.store.get_plan(week.plan_id) if week else None
                if task is None or week is None or plan is None or plan.owner_id != owner_id:
                    raise TaskNotFoundError(f"Task {task_id} not found for {owner_id}")

                is_completed = not task.is_completed
                completed_at = now if is_completed else None
                self.store.update_task_completion(
                    task.id,
                    is_completed=is_completed,
                    completed_at=completed_at,
                )

                tasks = self.store.list_tasks(week.id)
                all_done = bool(tasks) and week_is_complete(tasks)
                week_completed_at = (week.completed_at or now) if all_done else None
                if week_completed_at != week.completed_at:
                    self.store.set_week_completed_at(week.id, week_completed_at)
                just_completed = all_done and week.completed_at is None

        if just_completed:
            LOGGER.info("Week %d completed for %s", week.week_number, owner_id)
            self._emit(
                RoadmapEvent(
                    kind=RoadmapEventKind.WEEK_COMPLETED,
                    owner_id=owner_id,
                    week_number=week.week_number + 1,
                    occurred_at=now,
                    remind_at=next_check_in(now),
                )
            )
        return task.model_copy(update={"is_completed": is_completed, "completed_at": completed_at})

    def _emit(self, event: RoadmapEvent) -> None:
        if self.sinks:
            dispatch_event(self.sinks, event)
