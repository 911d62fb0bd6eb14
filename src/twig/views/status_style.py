# src/twig/views/status_style.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_models import TaskStatus


@dataclass(frozen=True, slots=True)
class StatusStyle:
    icon: str
    color: str  # rich color name
    label: str


_STYLES: dict[TaskStatus, StatusStyle] = {
    TaskStatus.NOT_STARTED: StatusStyle("○", "grey62", "Not Started"),
    TaskStatus.IN_PROGRESS: StatusStyle("◐", "yellow", "In Progress"),
    TaskStatus.COMPLETED: StatusStyle("●", "green", "Completed"),
    TaskStatus.CANCELLED: StatusStyle("✗", "red", "Cancelled"),
}


def status_style(status: TaskStatus) -> StatusStyle:
    return _STYLES[status]


def status_badge(status: TaskStatus) -> str:
    """Icon + label, e.g. "◐ In Progress"."""
    style = _STYLES[status]
    return f"{style.icon} {style.label}"
