"""Roadmap reminder events and the sinks that receive them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Iterable, List

__all__ = [
    "CHECK_IN_HOUR",
    "CHECK_IN_WEEKDAY",
    "LoggingReminderSink",
    "RESCAN_INTERVAL",
    "ReminderSink",
    "RoadmapEvent",
    "RoadmapEventKind",
    "dispatch_event",
    "next_check_in",
    "next_rescan",
]

LOGGER = logging.getLogger(__name__)

CHECK_IN_WEEKDAY = 2  # Wednesday
CHECK_IN_HOUR = 18
RESCAN_INTERVAL = timedelta(days=30)


class RoadmapEventKind(str, Enum):
    """Moments the reminder service cares about."""

    WEEK_UNLOCKED = "week_unlocked"
    WEEK_COMPLETED = "week_completed"
    RESCAN_DUE = "rescan_due"


@dataclass(frozen=True, slots=True)
class RoadmapEvent:
    """Notification hand-off emitted after a committed roadmap change.

    ``week_number`` is the week the reminder is about: the newly unlocked week,
    or for a completion the week that comes next. A rescan reminder carries
    the week that was just unlocked.
    """

    kind: RoadmapEventKind
    owner_id: str
    week_number: int
    occurred_at: datetime
    remind_at: datetime


ReminderSink = Callable[[RoadmapEvent], None]


def next_check_in(
    reference: datetime,
    *,
    weekday: int = CHECK_IN_WEEKDAY,
    hour: int = CHECK_IN_HOUR,
) -> datetime:
    """Return the first ``weekday`` at ``hour``:00 strictly after ``reference``."""
    candidate = reference.replace(hour=hour, minute=0, second=0, microsecond=0)
    candidate += timedelta(days=(weekday - reference.weekday()) % 7)
    if candidate <= reference:
        candidate += timedelta(days=7)
    return candidate


def next_rescan(reference: datetime, *, interval: timedelta = RESCAN_INTERVAL) -> datetime:
    """Return when a fresh photo scan should be requested after ``reference``."""
    return reference + interval


class LoggingReminderSink:
    """Sink that records events in the application log."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or LOGGER

    def __call__(self, event: RoadmapEvent) -> None:
        if event.kind is RoadmapEventKind.WEEK_UNLOCKED:
            self.logger.info(
                "Week %d unlocked for %s; check-in reminder at %s",
                event.week_number,
                event.owner_id,
                event.remind_at.isoformat(),
            )
        elif event.kind is RoadmapEventKind.RESCAN_DUE:
            self.logger.info(
                "Rescan reminder for %s (week %d) at %s",
                event.owner_id,
                event.week_number,
                event.remind_at.isoformat(),
            )
        else:
            self.logger.info(
                "Week %d completed for %s; next check-in at %s",
                event.week_number - 1,
                event.owner_id,
                event.remind_at.isoformat(),
            )


def dispatch_event(sinks: Iterable[ReminderSink], event: RoadmapEvent) -> List[Exception]:
    """Deliver ``event`` to every sink, logging sink failures instead of raising."""
    failures: List[Exception] = []
    for sink in sinks:
        try:
            sink(event)
        except Exception as error:  # noqa: BLE001 - a reminder sink must not undo a committed write
            LOGGER.warning("Reminder sink %r failed for %s: %s", sink, event.kind.value, error)
            failures.append(error)
    return failures
