# src/twig/tasks/task_models.py

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from ..errors import InvalidFormatError
from ..utils.dates import format_duration_human, utcnow

logger = logging.getLogger(__name__)

SHORT_ID_LEN = 8


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    not_started -> in_progress -> completed | cancelled.
    in_progress is re-entered after a pause (the timer stops, the status stays).
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, raw: str) -> TaskStatus:
        key = raw.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise InvalidFormatError(f"Invalid status: {raw!r}. Use one of: {choices}") from None


# Hours per unit letter: 8-hour day, 5-day week, ~4-week month.
EFFORT_UNIT_HOURS: dict[str, float] = {
    "h": 1.0,
    "d": 8.0,
    "w": 40.0,
    "m": 160.0,
}


@dataclass(frozen=True, slots=True)
class EffortEstimate:
    value: float
    unit: str

    @classmethod
    def parse(cls, raw: str) -> EffortEstimate:
        """Parse strings like "1h", "2d", "0.5w", "2m"."""
        text = raw.strip().lower()
        if not text:
            raise InvalidFormatError("Empty effort estimate. Use e.g. 1h, 2d, 3w, 2m")
        num_str, unit = text[:-1], text[-1]
        try:
            value = float(num_str)
        except ValueError:
            raise InvalidFormatError(f"Invalid effort value: {num_str!r}") from None
        if unit not in EFFORT_UNIT_HOURS:
            raise InvalidFormatError(f"Invalid effort unit: {unit!r}. Use h/d/w/m")
        return cls(value=value, unit=unit)

    def to_hours(self) -> float:
        return self.value * EFFORT_UNIT_HOURS[self.unit]

    @staticmethod
    def format_hours(hours: float) -> str:
        if hours < 8.0:
            return f"{hours:.1f}h"
        if hours < 40.0:
            return f"{hours / 8.0:.1f}d"
        if hours < 160.0:
            return f"{hours / 40.0:.1f}w"
        return f"{hours / 160.0:.1f}m"


@dataclass(slots=True)
class TimeEntry:
    start: datetime
    end: datetime | None = None
    duration_seconds: int | None = None

    def close(self, end: datetime) -> int:
        self.end = end
        # int() truncates toward zero, matching whole elapsed seconds
        self.duration_seconds = int((end - self.start).total_seconds())
        return self.duration_seconds

    def is_active(self) -> bool:
        return self.end is None


@dataclass(slots=True)
class Task:
    id: uuid.UUID
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.NOT_STARTED
    parent_id: uuid.UUID | None = None
    tags: list[str] = field(default_factory=list)
    assigned_to: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    estimated_effort_hours: float | None = None
    eta: datetime | None = None
    time_entries: list[TimeEntry] = field(default_factory=list)
    # Accumulator of closed entries; authoritative, never recomputed on read.
    total_time_seconds: int = 0
    notes: str = ""

    @classmethod
    def new(cls, title: str) -> Task:
        return cls(id=uuid.uuid4(), title=title, created_at=utcnow())

    @property
    def short_id(self) -> str:
        return str(self.id)[:SHORT_ID_LEN]

    # ---- lifecycle ----

    def start(self) -> bool:
        """
        Begin (or resume) tracking.

        Returns False without touching anything when a timer is already
        running, so a task never has two open entries.
        """
        if self.has_active_time_entry():
            logger.debug("start ignored, timer already running task=%s", self.short_id)
            return False
        now = utcnow()
        if self.status == TaskStatus.NOT_STARTED and self.started_at is None:
            self.started_at = now
        self.status = TaskStatus.IN_PROGRESS
        self.time_entries.append(TimeEntry(start=now))
        return True

    def complete(self) -> None:
        now = utcnow()
        self.status = TaskStatus.COMPLETED
        if self.completed_at is None:
            self.completed_at = now
        self._end_active_time_entry(now)

    def cancel(self) -> None:
        now = utcnow()
        self.status = TaskStatus.CANCELLED
        if self.cancelled_at is None:
            self.cancelled_at = now
        self._end_active_time_entry(now)

    def pause(self) -> bool:
        """Stop the running timer; status stays in_progress."""
        return self._end_active_time_entry(utcnow())

    def _end_active_time_entry(self, now: datetime) -> bool:
        entry = self.active_time_entry()
        if entry is None:
            return False
        self.total_time_seconds += entry.close(now)
        return True

    def active_time_entry(self) -> TimeEntry | None:
        for entry in self.time_entries:
            if entry.is_active():
                return entry
        return None

    def has_active_time_entry(self) -> bool:
        return self.active_time_entry() is not None

    def active_elapsed_seconds(self, now: datetime | None = None) -> int:
        entry = self.active_time_entry()
        if entry is None:
            return 0
        now = now or utcnow()
        return max(0, int((now - entry.start).total_seconds()))

    # ---- field helpers ----

    def set_estimate(self, raw: str) -> None:
        self.estimated_effort_hours = EffortEstimate.parse(raw).to_hours()

    def formatted_estimate(self) -> str | None:
        if self.estimated_effort_hours is None:
            return None
        return EffortEstimate.format_hours(self.estimated_effort_hours)

    def formatted_total_time(self) -> str:
        return format_duration_human(self.total_time_seconds)

    def add_note(self, text: str) -> None:
        stamp = utcnow().astimezone().strftime("%Y-%m-%d %H:%M")
        line = f"[{stamp}] {text.strip()}"
        self.notes = f"{self.notes}\n{line}" if self.notes else line

    def add_tags(self, tags: list[str]) -> list[str]:
        added: list[str] = []
        for tag in tags:
            if tag and tag not in self.tags:
                self.tags.append(tag)
                added.append(tag)
        return added

    def is_closed(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)
