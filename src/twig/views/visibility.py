# src/twig/views/visibility.py

from __future__ import annotations

import uuid
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Literal

from ..tasks.task_models import Task, TaskStatus
from ..tasks.task_store import TaskStore
from ..utils.dates import local_today, to_local_date


@dataclass(frozen=True, slots=True)
class VisibilityOptions:
    show_completed: bool = True
    show_cancelled: bool = False
    tag: str | None = None
    assignee: str | None = None


@dataclass(frozen=True, slots=True)
class VisibleItem:
    """
    One row of the interactive list.

    kind="owner" rows are reportee headers (task_id is None); kind="task"
    rows carry the task id, its owner (None for the primary user) and its
    depth below the root.
    """

    kind: Literal["task", "owner"]
    owner: str | None
    task_id: uuid.UUID | None = None
    depth: int = 0


def _closed_today(at, today: date) -> bool:
    return at is not None and to_local_date(at) == today


def is_visible(task: Task, options: VisibilityOptions, today: date | None = None) -> bool:
    """
    Filter one task.

    Completed/cancelled tasks closed earlier today stay visible whatever the
    toggles say, so the day's finished work is always on screen.
    """
    today = today or local_today()
    if task.status == TaskStatus.COMPLETED and not options.show_completed:
        if not _closed_today(task.completed_at, today):
            return False
    if task.status == TaskStatus.CANCELLED and not options.show_cancelled:
        if not _closed_today(task.cancelled_at, today):
            return False
    if options.tag is not None and options.tag not in task.tags:
        return False
    if options.assignee is not None and task.assigned_to != options.assignee:
        return False
    return True


def project(
    store: TaskStore,
    options: VisibilityOptions,
    expanded: Collection[uuid.UUID],
    *,
    today: date | None = None,
) -> list[VisibleItem]:
    """
    Rebuild the flat visible list from scratch.

    Visible roots in store order; a task's visible children follow it
    (recursively) only when its id is in `expanded`. A hidden task hides its
    whole subtree.
    """
    today = today or local_today()
    children = store.children_index()
    items: list[VisibleItem] = []

    def add(task: Task) -> None:
        items.append(VisibleItem("task", store.owner, task.id, store.task_depth(task)))
        if task.id not in expanded:
            return
        for child_id in children.get(task.id, []):
            child = store.get_task(child_id)
            if child is not None and is_visible(child, options, today):
                add(child)

    for root in store.get_root_tasks():
        if is_visible(root, options, today):
            add(root)
    return items


def project_owners(
    stores: Mapping[str, TaskStore],
    options: VisibilityOptions,
    expanded: Collection[uuid.UUID],
    expanded_owners: Collection[str],
    *,
    today: date | None = None,
) -> list[VisibleItem]:
    """
    Multi-owner variant: one header per reportee, then (if the header is
    expanded) that owner's projection. The assignee filter does not apply.
    """
    today = today or local_today()
    owner_options = VisibilityOptions(
        show_completed=options.show_completed,
        show_cancelled=options.show_cancelled,
        tag=options.tag,
    )
    items: list[VisibleItem] = []
    for name, store in stores.items():
        items.append(VisibleItem("owner", name))
        if name in expanded_owners:
            items.extend(project(store, owner_options, expanded, today=today))
    return items
