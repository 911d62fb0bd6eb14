# src/twig/core/interactive.py

"""
State behind the interactive console view.

The view never updates its row list incrementally: every action ends with
rebuild(), which re-runs the visibility projection. The projection is
memoized on (tab, filters, expand sets, store versions, local day), so
rebuilding after a no-op action is free.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import replace
from enum import StrEnum
from typing import Any

from ..errors import TwigError
from ..tasks import task_api
from ..tasks.task_models import Task
from ..tasks.task_store import TaskStore
from ..utils.dates import local_today
from ..views.visibility import VisibilityOptions, VisibleItem, project, project_owners

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "estimate", "eta", "assignee")


class ViewTab(StrEnum):
    MY_TASKS = "my"
    REPORTEES = "reportees"


class InteractiveView:
    def __init__(
        self,
        store: TaskStore,
        reportee_stores: Mapping[str, TaskStore] | None = None,
        *,
        options: VisibilityOptions | None = None,
    ) -> None:
        self.store = store
        self.reportee_stores: dict[str, TaskStore] = dict(reportee_stores or {})
        self.options = options or VisibilityOptions()
        self.tab = ViewTab.MY_TASKS
        self.expanded: set[uuid.UUID] = set()
        self.expanded_owners: set[str] = set()
        self.selected_index = 0
        self.items: list[VisibleItem] = []
        self._memo_key: tuple | None = None
        self.rebuild()

    # ---- projection ----

    def _projection_key(self) -> tuple:
        return (
            self.tab,
            self.options,
            frozenset(self.expanded),
            frozenset(self.expanded_owners),
            self.store.version,
            tuple((name, s.version) for name, s in self.reportee_stores.items()),
            local_today(),
        )

    def rebuild(self, *, force: bool = False) -> None:
        key = self._projection_key()
        if not force and key == self._memo_key:
            return
        if self.tab == ViewTab.MY_TASKS:
            self.items = project(self.store, self.options, self.expanded)
        else:
            self.items = project_owners(
                self.reportee_stores, self.options, self.expanded, self.expanded_owners
            )
        self._memo_key = key
        self.selected_index = min(self.selected_index, max(0, len(self.items) - 1))

    def store_for(self, owner: str | None) -> TaskStore:
        return self.store if owner is None else self.reportee_stores[owner]

    def rows(self) -> list[tuple[VisibleItem, Task | None]]:
        out: list[tuple[VisibleItem, Task | None]] = []
        for item in self.items:
            task = None
            if item.kind == "task" and item.task_id is not None:
                task = self.store_for(item.owner).get_task(item.task_id)
            out.append((item, task))
        return out

    # ---- selection ----

    def selected_item(self) -> VisibleItem | None:
        if 0 <= self.selected_index < len(self.items):
            return self.items[self.selected_index]
        return None

    def selected_task(self) -> tuple[Task, TaskStore] | None:
        item = self.selected_item()
        if item is None or item.kind != "task" or item.task_id is None:
            return None
        store = self.store_for(item.owner)
        task = store.get_task(item.task_id)
        return (task, store) if task is not None else None

    def move_up(self) -> None:
        if self.selected_index > 0:
            self.selected_index -= 1

    def move_down(self) -> None:
        if self.selected_index < len(self.items) - 1:
            self.selected_index += 1

    def has_children(self, item: VisibleItem) -> bool:
        if item.kind != "task" or item.task_id is None:
            return False
        return self.store_for(item.owner).has_children(item.task_id)

    def is_expanded(self, item: VisibleItem) -> bool:
        if item.kind == "owner":
            return item.owner in self.expanded_owners
        return item.task_id in self.expanded

    def toggle_expand(self) -> bool:
        item = self.selected_item()
        if item is None:
            return False
        if item.kind == "owner" and item.owner is not None:
            self.expanded_owners ^= {item.owner}
        elif item.task_id is not None and self.has_children(item):
            self.expanded ^= {item.task_id}
        else:
            return False
        self.rebuild()
        return True

    # ---- filters / tabs ----

    def toggle_completed(self) -> None:
        self.options = replace(self.options, show_completed=not self.options.show_completed)
        self.rebuild()

    def toggle_cancelled(self) -> None:
        self.options = replace(self.options, show_cancelled=not self.options.show_cancelled)
        self.rebuild()

    def set_tag_filter(self, tag: str | None) -> None:
        self.options = replace(self.options, tag=tag or None)
        self.rebuild()

    def set_assignee_filter(self, assignee: str | None) -> None:
        self.options = replace(self.options, assignee=assignee or None)
        self.rebuild()

    def switch_tab(self, tab: ViewTab) -> bool:
        if tab == ViewTab.REPORTEES and not self.reportee_stores:
            return False
        if tab != self.tab:
            self.tab = tab
            self.selected_index = 0
            self.rebuild()
        return True

    # ---- mutations on the selected task ----

    def _apply(self, action: Callable[[TaskStore, str], Any]) -> Any:
        selected = self.selected_task()
        if selected is None:
            return None
        task, store = selected
        result = action(store, str(task.id))
        self.rebuild()
        return result

    def start_selected(self) -> tuple[Task, bool] | None:
        return self._apply(task_api.start_task)

    def complete_selected(self) -> tuple[Task, bool] | None:
        return self._apply(task_api.complete_task)

    def cancel_selected(self) -> tuple[Task, bool] | None:
        return self._apply(task_api.cancel_task)

    def pause_selected(self) -> tuple[Task, bool] | None:
        return self._apply(task_api.pause_task)

    def add_task(self, title: str, **fields) -> Task:
        """
        Create a task. With a task selected the new task becomes its child
        (and the parent is expanded so the child shows up); with a reportee
        header selected it becomes a root task of that reportee.
        """
        item = self.selected_item()
        store = self.store if self.tab == ViewTab.MY_TASKS else None
        parent: str | None = None
        if item is not None:
            store = self.store_for(item.owner)
            if item.kind == "task" and item.task_id is not None:
                parent = str(item.task_id)
        if store is None:
            raise ValueError("Select a reportee before adding a task")
        task = task_api.create_task(store, title, parent=parent, **fields)
        if task.parent_id is not None:
            self.expanded.add(task.parent_id)
        if item is not None and item.kind == "owner" and item.owner is not None:
            self.expanded_owners.add(item.owner)
        self.rebuild()
        return task

    def edit_selected(self, field_name: str, value: str) -> tuple[Task, bool] | None:
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown field {field_name!r}. Editable: {', '.join(EDITABLE_FIELDS)}")
        return self._apply(lambda store, token: task_api.update_task_fields(store, token, **{field_name: value}))

    def tag_selected(self, tags: str) -> tuple[Task, list[str]] | None:
        return self._apply(lambda store, token: task_api.tag_task(store, token, tags))

    def note_selected(self, text: str) -> Task | None:
        result = self._apply(lambda store, token: (task_api.add_note(store, token, text), True))
        return result[0] if result else None

    def delete_selected(self) -> tuple[Task, list[Task]] | None:
        result = self._apply(task_api.delete_task)
        if result is not None:
            self.expanded.discard(result[0].id)
        return result

    def reload(self) -> None:
        """Re-read every store from disk (primary errors propagate)."""
        self.store.load()
        for name, store in self.reportee_stores.items():
            try:
                store.load()
            except TwigError as e:
                logger.warning("Reportee %s could not be reloaded, showing it empty: %s", name, e)
                store.clear()
        self.rebuild(force=True)
