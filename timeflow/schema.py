"""Core data schema for timelines and review reports."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import time
from typing import Optional

CATEGORIES = ("work", "life", "health", "growth")
STATUSES = ("pending", "completed")

PENDING = "pending"
COMPLETED = "completed"


@dataclass(frozen=True)
class Task:
    """One scheduled activity on today's timeline."""

    id: int
    start_time: time
    end_time: time
    title: str
    category: str = "work"
    status: str = PENDING

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError(f"Task {self.id}: title must not be empty")
        if self.category not in CATEGORIES:
            raise ValueError(f"Task {self.id}: invalid category '{self.category}'")
        if self.status not in STATUSES:
            raise ValueError(f"Task {self.id}: invalid status '{self.status}'")
        if not self.start_time < self.end_time:
            raise ValueError(f"Task {self.id}: start_time must be before end_time")

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def start_minutes(self) -> int:
        return self.start_time.hour * 60 + self.start_time.minute

    @property
    def end_minutes(self) -> int:
        return self.end_time.hour * 60 + self.end_time.minute

    @property
    def window(self) -> str:
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"

    def toggled(self) -> "Task":
        """Return a copy with the status flipped between pending and completed."""

        return replace(self, status=PENDING if self.is_completed else COMPLETED)


@dataclass(frozen=True)
class Insight:
    """Short templated statement about the day."""

    title: str
    detail: str
    category: Optional[str] = None
    window: Optional[str] = None


@dataclass(frozen=True)
class ReviewReport:
    """Plan-versus-execution review derived from a timeline snapshot and narrative."""

    completed_count: int
    total_count: int
    score: int
    highlights: tuple[Insight, ...] = field(default_factory=tuple)
    suggestions: tuple[Insight, ...] = field(default_factory=tuple)
    summary: str = ""
