# src/twig/views/tree.py

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from ..tasks.task_models import Task
from ..tasks.task_store import TaskStore
from .status_style import status_style

TaskPredicate = Callable[[Task], bool]

BRANCH = "├─"
LAST_BRANCH = "└─"
PIPE = "│ "
BLANK = "  "


@dataclass(slots=True)
class Forest:
    """
    Flat arena view of the task hierarchy.

    `tasks` holds references into the store (no copies); `children` maps a
    parent id to its child ids in store order; `roots` lists root ids in
    store order.
    """

    tasks: dict[uuid.UUID, Task] = field(default_factory=dict)
    children: dict[uuid.UUID, list[uuid.UUID]] = field(default_factory=dict)
    roots: list[uuid.UUID] = field(default_factory=list)

    def child_ids(self, task_id: uuid.UUID) -> list[uuid.UUID]:
        return self.children.get(task_id, [])

    def __len__(self) -> int:
        return len(self.tasks)


def build_forest(store: TaskStore, predicate: TaskPredicate | None = None) -> Forest:
    """
    Index the store once: one tree per root task.

    Tasks rejected by `predicate` are left out together with their subtree.
    Orphans (dangling parent_id) are not roots and do not appear.
    """
    forest = Forest()
    kept = [t for t in store if predicate is None or predicate(t)]
    for task in kept:
        forest.tasks[task.id] = task
    for task in kept:
        if task.parent_id is None:
            forest.roots.append(task.id)
        elif task.parent_id in forest.tasks:
            forest.children.setdefault(task.parent_id, []).append(task.id)
    return forest


def format_task_line(task: Task) -> str:
    parts = [f"{status_style(task.status).icon} {task.title} [{task.short_id}]"]
    if task.total_time_seconds > 0:
        parts.append(f" [{task.formatted_total_time()}]")
    estimate = task.formatted_estimate()
    if estimate:
        parts.append(f" (~{estimate})")
    if task.tags:
        parts.append(" " + " ".join(f"#{t}" for t in task.tags))
    return "".join(parts)


def format_tree(forest: Forest) -> list[str]:
    """Depth-first, one line per node, classic box-drawing connectors."""
    lines: list[str] = []

    def walk(task_id: uuid.UUID, prefix: str, is_last: bool) -> None:
        connector = LAST_BRANCH if is_last else BRANCH
        lines.append(f"{prefix}{connector} {format_task_line(forest.tasks[task_id])}")
        child_prefix = prefix + (BLANK if is_last else PIPE)
        kids = forest.child_ids(task_id)
        for i, child_id in enumerate(kids):
            walk(child_id, child_prefix, i == len(kids) - 1)

    for i, root_id in enumerate(forest.roots):
        walk(root_id, "", i == len(forest.roots) - 1)
    return lines
