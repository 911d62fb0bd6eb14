# tests/test_task_api.py

from __future__ import annotations

import logging

import pytest

from twig.errors import HierarchyCycleError, InvalidFormatError, NotFoundError
from twig.tasks import task_api
from twig.tasks.task_models import TaskStatus
from twig.tasks.task_store import TaskStore

from .conftest import add
from .fakes import MemoryTaskFile


def test_split_tags() -> None:
    assert task_api.split_tags("a, #b,a,,c") == ["a", "b", "c"]
    assert task_api.split_tags(["x,y", "#x"]) == ["x", "y"]
    assert task_api.split_tags(None) == []


def test_create_task_with_all_fields(store: TaskStore) -> None:
    parent = add(store, "Parent")
    task = task_api.create_task(
        store,
        "  Child  ",
        parent=parent.short_id,
        tags="backend,#api",
        estimate="2d",
        eta="2030-01-15",
        assignee=" alice ",
        description="details",
    )
    assert task.title == "Child"
    assert task.parent_id == parent.id
    assert task.tags == ["backend", "api"]
    assert task.estimated_effort_hours == 16.0
    assert task.eta is not None
    assert task.assigned_to == "alice"
    assert task.description == "details"
    assert store.get_task(task.id) is task


def test_create_task_with_missing_parent_leaves_store_unchanged(store: TaskStore, backend: MemoryTaskFile) -> None:
    with pytest.raises(NotFoundError):
        task_api.create_task(store, "Child", parent="deadbeef")
    assert len(store) == 0
    assert backend.saves == 0


def test_create_task_rejects_bad_estimate_and_empty_title(store: TaskStore) -> None:
    with pytest.raises(InvalidFormatError):
        task_api.create_task(store, "T", estimate="3x")
    with pytest.raises(ValueError):
        task_api.create_task(store, "   ")
    assert len(store) == 0


def test_lifecycle_by_token(store: TaskStore, backend: MemoryTaskFile) -> None:
    task = add(store, "A")
    _, changed = task_api.start_task(store, task.short_id)
    assert changed
    _, changed = task_api.start_task(store, task.short_id)
    assert not changed

    _, paused = task_api.pause_task(store, task.short_id)
    assert paused
    _, paused = task_api.pause_task(store, task.short_id)
    assert not paused

    _, changed = task_api.complete_task(store, str(task.id))
    assert changed
    assert backend.saved[0].status == TaskStatus.COMPLETED
    _, changed = task_api.complete_task(store, str(task.id))
    assert not changed

    _, changed = task_api.cancel_task(store, task.short_id)
    assert changed
    assert task.status == TaskStatus.CANCELLED


def test_update_fields_and_clear(store: TaskStore) -> None:
    task = add(store, "A")
    task_api.update_task_fields(store, task.short_id, title="B", estimate="4h", eta="today", assignee="bob")
    assert task.title == "B"
    assert task.estimated_effort_hours == 4.0
    assert task.eta is not None
    assert task.assigned_to == "bob"

    _, changed = task_api.update_task_fields(store, task.short_id, estimate="", eta="", assignee="")
    assert changed
    assert task.estimated_effort_hours is None
    assert task.eta is None
    assert task.assigned_to is None

    _, changed = task_api.update_task_fields(store, task.short_id)
    assert not changed


def test_update_with_bad_date_changes_nothing(store: TaskStore) -> None:
    task = add(store, "A")
    with pytest.raises(InvalidFormatError):
        task_api.update_task_fields(store, task.short_id, title="B", eta="someday")
    assert task.title == "A"


def test_set_parent_and_cycle_detection(store: TaskStore) -> None:
    a = add(store, "A")
    b = add(store, "B", a)
    c = add(store, "C", b)
    with pytest.raises(HierarchyCycleError):
        task_api.set_parent(store, a.short_id, c.short_id)
    with pytest.raises(HierarchyCycleError):
        task_api.set_parent(store, a.short_id, a.short_id)
    assert a.parent_id is None

    task_api.set_parent(store, c.short_id, a.short_id)
    assert c.parent_id == a.id
    task_api.set_parent(store, c.short_id, None)
    assert c.parent_id is None


def test_tag_and_note(store: TaskStore) -> None:
    task = add(store, "A", tags=["x"])
    _, added = task_api.tag_task(store, task.short_id, "x,y")
    assert added == ["y"]
    task_api.add_note(store, task.short_id, "hello")
    assert task.notes.endswith("hello")
    with pytest.raises(ValueError):
        task_api.add_note(store, task.short_id, "  ")


def test_delete_reports_orphans(store: TaskStore, caplog) -> None:
    a = add(store, "A")
    b = add(store, "B", a)
    with caplog.at_level(logging.WARNING, logger="twig.tasks.task_api"):
        removed, orphans = task_api.delete_task(store, a.short_id)
    assert removed.id == a.id
    assert [t.id for t in orphans] == [b.id]
    assert "orphaned" in caplog.text


def test_filter_tasks(store: TaskStore) -> None:
    a = add(store, "A", tags=["x"], assigned_to="ann")
    add(store, "B", tags=["y"])
    c = add(store, "C", tags=["x"], status=TaskStatus.COMPLETED)
    assert [t.id for t in task_api.filter_tasks(store, tag="x")] == [a.id, c.id]
    assert [t.id for t in task_api.filter_tasks(store, assignee="ann")] == [a.id]
    assert [t.id for t in task_api.filter_tasks(store, status=TaskStatus.COMPLETED)] == [c.id]
