# src/twig/tasks/task_api.py

"""
Store-level task operations.

Every surface (CLI subcommands, interactive view) goes through these helpers
so parent resolution, tag parsing and write-through persistence behave the
same everywhere. Each helper takes the store explicitly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..errors import HierarchyCycleError
from ..utils.dates import parse_date
from .resolver import resolve_task, resolve_task_id
from .task_models import EffortEstimate, Task, TaskStatus
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def split_tags(raw: str | Iterable[str] | None) -> list[str]:
    """Comma-separated (or already split) tags -> trimmed, deduplicated list."""
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else [p for item in raw for p in item.split(",")]
    out: list[str] = []
    for part in parts:
        tag = part.strip().lstrip("#")
        if tag and tag not in out:
            out.append(tag)
    return out


def create_task(
    store: TaskStore,
    title: str,
    *,
    parent: str | None = None,
    tags: str | Iterable[str] | None = None,
    estimate: str | None = None,
    eta: str | None = None,
    assignee: str | None = None,
    description: str | None = None,
) -> Task:
    """
    Build a task from user input and persist it.

    All parsing happens before the store is touched: a bad estimate, date or
    parent leaves the store unchanged.
    """
    if not title or not title.strip():
        raise ValueError("title is required")

    task = Task.new(title.strip())
    if description:
        task.description = description
    if parent:
        task.parent_id = resolve_task(store, parent).id
    task.tags = split_tags(tags)
    if estimate:
        task.set_estimate(estimate)
    if eta:
        task.eta = parse_date(eta)
    if assignee:
        task.assigned_to = assignee.strip()

    store.add_task(task)
    return task


def start_task(store: TaskStore, token: str) -> tuple[Task, bool]:
    task = resolve_task(store, token)
    with store.edit_task(task.id):
        changed = task.start()
    return task, changed


def complete_task(store: TaskStore, token: str) -> tuple[Task, bool]:
    task = resolve_task(store, token)
    with store.edit_task(task.id):
        changed = task.status != TaskStatus.COMPLETED
        task.complete()
    return task, changed


def cancel_task(store: TaskStore, token: str) -> tuple[Task, bool]:
    task = resolve_task(store, token)
    with store.edit_task(task.id):
        changed = task.status != TaskStatus.CANCELLED
        task.cancel()
    return task, changed


def pause_task(store: TaskStore, token: str) -> tuple[Task, bool]:
    task = resolve_task(store, token)
    if not task.has_active_time_entry():
        return task, False
    with store.edit_task(task.id):
        task.pause()
    return task, True


def update_task_fields(
    store: TaskStore,
    token: str,
    *,
    title: str | None = None,
    description: str | None = None,
    estimate: str | None = None,
    eta: str | None = None,
    assignee: str | None = None,
) -> tuple[Task, bool]:
    """
    Apply the provided fields only. Returns (task, changed).

    An empty string clears estimate/eta/assignee.
    """
    task = resolve_task(store, token)

    # Parse first so a bad value leaves the task untouched.
    new_estimate: float | None = None
    if estimate:
        new_estimate = EffortEstimate.parse(estimate).to_hours()
    new_eta = parse_date(eta) if eta else None

    changed = False
    with store.edit_task(task.id):
        if title is not None and title.strip():
            task.title = title.strip()
            changed = True
        if description is not None:
            task.description = description
            changed = True
        if estimate is not None:
            task.estimated_effort_hours = new_estimate
            changed = True
        if eta is not None:
            task.eta = new_eta
            changed = True
        if assignee is not None:
            task.assigned_to = assignee.strip() or None
            changed = True
    return task, changed


def set_parent(store: TaskStore, token: str, parent_token: str | None) -> Task:
    """Re-parent a task (None makes it a root). Refuses to create a cycle."""
    task = resolve_task(store, token)
    new_parent_id = None
    if parent_token:
        parent = resolve_task(store, parent_token)
        if parent.id == task.id or parent.id in store.descendant_ids(task.id):
            raise HierarchyCycleError(
                f"Cannot move {task.short_id} under {parent.short_id}: it would become its own ancestor"
            )
        new_parent_id = parent.id
    with store.edit_task(task.id):
        task.parent_id = new_parent_id
    return task


def tag_task(store: TaskStore, token: str, tags: str | Iterable[str]) -> tuple[Task, list[str]]:
    task = resolve_task(store, token)
    with store.edit_task(task.id):
        added = task.add_tags(split_tags(tags))
    return task, added


def add_note(store: TaskStore, token: str, text: str) -> Task:
    if not text.strip():
        raise ValueError("note text is required")
    task = resolve_task(store, token)
    with store.edit_task(task.id):
        task.add_note(text)
    return task


def delete_task(store: TaskStore, token: str) -> tuple[Task, list[Task]]:
    """
    Delete one task. Returns (deleted, orphans).

    Children keep their parent_id; they stay reachable by id but drop out of
    root listings and trees.
    """
    task_id = resolve_task_id(store, token)
    orphans = store.get_children(task_id)
    removed = store.delete_task(task_id)
    if orphans:
        logger.warning("Deleted task %s left %d orphaned subtask(s)", removed.short_id, len(orphans))
    return removed, orphans


def filter_tasks(
    tasks: Iterable[Task],
    *,
    status: TaskStatus | None = None,
    tag: str | None = None,
    assignee: str | None = None,
) -> list[Task]:
    out: list[Task] = []
    for task in tasks:
        if status is not None and task.status != status:
            continue
        if tag is not None and tag not in task.tags:
            continue
        if assignee is not None and task.assigned_to != assignee:
            continue
        out.append(task)
    return out
