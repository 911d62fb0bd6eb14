# src/twig/views/reports.py

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..tasks.task_api import filter_tasks
from ..tasks.task_models import Task, TaskStatus
from ..utils.dates import DateRange


@dataclass(slots=True)
class PeriodReport:
    period: DateRange
    created: list[Task] = field(default_factory=list)
    started: list[Task] = field(default_factory=list)
    completed: list[Task] = field(default_factory=list)
    cancelled: list[Task] = field(default_factory=list)
    # Currently in progress, regardless of the period.
    in_progress: list[Task] = field(default_factory=list)


def build_report(tasks: Iterable[Task], period: DateRange, *, assignee: str | None = None) -> PeriodReport:
    report = PeriodReport(period=period)
    for task in filter_tasks(tasks, assignee=assignee):
        if period.contains(task.created_at):
            report.created.append(task)
        if period.contains(task.started_at):
            report.started.append(task)
        if period.contains(task.completed_at):
            report.completed.append(task)
        if period.contains(task.cancelled_at):
            report.cancelled.append(task)
        if task.status == TaskStatus.IN_PROGRESS:
            report.in_progress.append(task)
    return report


@dataclass(slots=True)
class TaskStats:
    total: int
    by_status: dict[TaskStatus, int]
    total_time_seconds: int
    average_time_seconds: int
    estimated_hours: float | None = None
    actual_hours: float | None = None
    top_tags: list[tuple[str, int]] = field(default_factory=list)

    def share(self, status: TaskStatus) -> float:
        return (self.by_status[status] / self.total * 100.0) if self.total else 0.0

    @property
    def estimate_variance_pct(self) -> float | None:
        if not self.estimated_hours or self.actual_hours is None:
            return None
        return (self.actual_hours - self.estimated_hours) / self.estimated_hours * 100.0


def compute_stats(
    tasks: Iterable[Task],
    *,
    period: DateRange | None = None,
    assignee: str | None = None,
    top_n: int = 10,
) -> TaskStats:
    """
    Aggregate counts and time.

    With a period, a task counts if it was created, started or completed in
    it. Estimate accuracy only looks at completed tasks that carry an
    estimate.
    """
    selected = filter_tasks(tasks, assignee=assignee)
    if period is not None:
        selected = [
            t
            for t in selected
            if period.contains(t.created_at) or period.contains(t.started_at) or period.contains(t.completed_at)
        ]

    by_status = {s: 0 for s in TaskStatus}
    for task in selected:
        by_status[task.status] += 1

    total_time = sum(t.total_time_seconds for t in selected)
    stats = TaskStats(
        total=len(selected),
        by_status=by_status,
        total_time_seconds=total_time,
        average_time_seconds=total_time // len(selected) if selected else 0,
    )

    estimated = [
        t for t in selected if t.status == TaskStatus.COMPLETED and t.estimated_effort_hours is not None
    ]
    if estimated:
        stats.estimated_hours = sum(t.estimated_effort_hours or 0.0 for t in estimated)
        stats.actual_hours = sum(t.total_time_seconds / 3600.0 for t in estimated)

    tag_counts: Counter[str] = Counter(tag for t in selected for tag in t.tags)
    stats.top_tags = tag_counts.most_common(top_n)
    return stats
