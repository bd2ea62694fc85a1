"""Typed records persisted by the roadmap store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Return a fresh opaque record identifier."""
    return uuid4().hex


class RecordModel(BaseModel):
    """Base Pydantic model with strict field handling."""

    model_config = ConfigDict(extra="forbid", frozen=False)


class Plan(RecordModel):
    """Per-owner container for the multi-week roadmap."""

    id: str = Field(default_factory=new_id)
    owner_id: str
    current_week_number: int = Field(default=1, ge=1)
    source_analysis_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    last_updated_at: datetime = Field(default_factory=utc_now)


class Week(RecordModel):
    """One generated stage of a plan."""

    id: str = Field(default_factory=new_id)
    plan_id: str
    week_number: int = Field(ge=1)
    title: str
    summary: str = ""
    unlocked_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None


class Task(RecordModel):
    """Single actionable item inside a week."""

    id: str = Field(default_factory=new_id)
    week_id: str
    title: str
    body: str = ""
    category: str
    timeframe: str
    priority: int = 0
    product_suggestions: List[str] = Field(default_factory=list)
    context: str = ""
    is_completed: bool = False
    completed_at: Optional[datetime] = None

    @field_validator("category", "timeframe")
    @classmethod
    def _require_label(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be empty")
        return cleaned


def week_is_complete(tasks: List[Task]) -> bool:
    """A week is complete when every task is done; an empty week counts as complete."""
    return all(task.is_completed for task in tasks)


def completion_ratio(tasks: List[Task]) -> float:
    """Return the completed fraction of ``tasks`` (0 when there are none)."""
    if not tasks:
        return 0.0
    done = sum(1 for task in tasks if task.is_completed)
    return done / len(tasks)
