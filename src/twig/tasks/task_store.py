# src/twig/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import uuid
from collections.abc import Iterator
from pathlib import Path

from ..core.ports import TaskPersistence
from ..errors import NotFoundError
from ..storage.json_file import JsonTaskFile
from .task_models import Task

logger = logging.getLogger(__name__)


class TaskStore:
    """
    In-memory task collection for one owner.

    - the primary user (owner=None) or one reportee (owner=<name>)
    - insertion order is the store order used by every hierarchy query
    - every mutating call persists immediately (write-through, no batching)

    No locking: two processes on the same file race with last-write-wins.
    """

    def __init__(self, persistence: TaskPersistence, *, owner: str | None = None) -> None:
        self._persistence = persistence
        self.owner = owner
        self._tasks: list[Task] = []
        # Bumped on every load/mutation; consumers use it to key memoized views.
        self.version = 0

    @classmethod
    def at_path(cls, path: str | Path, *, owner: str | None = None) -> TaskStore:
        return cls(JsonTaskFile(path), owner=owner)

    @property
    def path(self) -> Path | None:
        return self._persistence.path

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    # ---- persistence ----

    def load(self) -> None:
        self._tasks = list(self._persistence.load())
        self.version += 1
        logger.debug("TaskStore loaded owner=%s total=%d", self.owner or "-", len(self._tasks))

    def clear(self) -> None:
        """Drop the in-memory collection; the file is left untouched."""
        self._tasks = []
        self.version += 1

    def save(self) -> None:
        self._persistence.save(self._tasks)
        self.version += 1

    # ---- CRUD ----

    def add_task(self, task: Task) -> None:
        self._tasks.append(task)
        self.save()
        logger.info("Task added id=%s parent=%s", task.short_id, task.parent_id)

    def update_task(self, task: Task) -> None:
        idx = self._index_of(task.id)
        self._tasks[idx] = task
        self.save()

    def delete_task(self, task_id: uuid.UUID) -> Task:
        """Remove one task. Children are not touched and become orphans."""
        idx = self._index_of(task_id)
        removed = self._tasks.pop(idx)
        self.save()
        logger.info("Task deleted id=%s", removed.short_id)
        return removed

    def get_task(self, task_id: uuid.UUID) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def require_task(self, task_id: uuid.UUID) -> Task:
        task = self.get_task(task_id)
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}")
        return task

    @contextlib.contextmanager
    def edit_task(self, task_id: uuid.UUID) -> Iterator[Task]:
        """
        Yield the live task for in-place mutation, then persist.

        Nothing is written if the body raises.
        """
        task = self.require_task(task_id)
        yield task
        self.save()

    def _index_of(self, task_id: uuid.UUID) -> int:
        for idx, task in enumerate(self._tasks):
            if task.id == task_id:
                return idx
        raise NotFoundError(f"Task not found: {task_id}")

    # ---- queries ----

    def all_tasks(self) -> list[Task]:
        return list(self._tasks)

    def find_tasks_by_short_id(self, short_id: str) -> list[Task]:
        short = short_id.lower()
        return [t for t in self._tasks if t.short_id == short]

    def find_task_by_short_id(self, short_id: str) -> Task | None:
        matches = self.find_tasks_by_short_id(short_id)
        return matches[0] if matches else None

    def get_root_tasks(self) -> list[Task]:
        return [t for t in self._tasks if t.parent_id is None]

    def get_children(self, parent_id: uuid.UUID) -> list[Task]:
        return [t for t in self._tasks if t.parent_id == parent_id]

    def has_children(self, parent_id: uuid.UUID) -> bool:
        return any(t.parent_id == parent_id for t in self._tasks)

    def children_index(self) -> dict[uuid.UUID, list[uuid.UUID]]:
        index: dict[uuid.UUID, list[uuid.UUID]] = {}
        for task in self._tasks:
            if task.parent_id is not None:
                index.setdefault(task.parent_id, []).append(task.id)
        return index

    def get_task_hierarchy(self, task: Task) -> list[uuid.UUID]:
        """
        Ancestor chain, root first, ending with `task.id`.

        A dangling parent id is kept as the first element and ends the walk.
        A parent cycle ends the walk at the first repeated id.
        """
        chain = [task.id]
        seen = {task.id}
        current = task.parent_id
        while current is not None:
            if current in seen:
                logger.warning("Parent cycle detected at task=%s", str(current)[:8])
                break
            chain.insert(0, current)
            seen.add(current)
            parent = self.get_task(current)
            if parent is None:
                break
            current = parent.parent_id
        return chain

    def task_depth(self, task: Task) -> int:
        return len(self.get_task_hierarchy(task)) - 1

    def descendant_ids(self, task_id: uuid.UUID) -> set[uuid.UUID]:
        index = self.children_index()
        out: set[uuid.UUID] = set()
        stack = list(index.get(task_id, []))
        while stack:
            child = stack.pop()
            if child in out:
                continue
            out.add(child)
            stack.extend(index.get(child, []))
        return out
