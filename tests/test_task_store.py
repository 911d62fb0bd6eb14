# tests/test_task_store.py

from __future__ import annotations

import json
import uuid
from datetime import timedelta
from pathlib import Path

import pytest

from twig.errors import NotFoundError, TaskParseError
from twig.tasks.task_models import Task, TaskStatus, TimeEntry
from twig.tasks.task_store import TaskStore
from twig.utils.dates import utcnow

from .conftest import add
from .fakes import MemoryTaskFile


def test_missing_file_loads_empty(tmp_path: Path) -> None:
    store = TaskStore.at_path(tmp_path / "nope.json")
    store.load()
    assert len(store) == 0


def test_whitespace_file_loads_empty(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    path.write_text("  \n", "utf-8")
    store = TaskStore.at_path(path)
    store.load()
    assert store.all_tasks() == []


@pytest.mark.parametrize("content", ["{not json", '{"a": 1}', '[{"title": "no id"}]'])
def test_malformed_file_raises_parse_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "tasks.json"
    path.write_text(content, "utf-8")
    store = TaskStore.at_path(path)
    with pytest.raises(TaskParseError):
        store.load()


def test_roundtrip_through_json_file(file_store: TaskStore) -> None:
    parent = add(file_store, "Parent", tags=["x"], notes="n")
    child = add(file_store, "Child", parent)
    with file_store.edit_task(child.id) as task:
        task.start()
        task.pause()

    reloaded = TaskStore.at_path(file_store.path)
    reloaded.load()
    assert [t.id for t in reloaded] == [parent.id, child.id]
    again = reloaded.require_task(child.id)
    assert again.parent_id == parent.id
    assert again.status == TaskStatus.IN_PROGRESS
    assert len(again.time_entries) == 1
    assert again.time_entries[0].end is not None
    assert reloaded.require_task(parent.id).tags == ["x"]


def test_roundtrip_keeps_every_field(file_store: TaskStore) -> None:
    now = utcnow()
    parent = add(file_store, "Parent")
    full = add(
        file_store,
        "Everything",
        parent,
        description="long text",
        status=TaskStatus.IN_PROGRESS,
        tags=["a", "b"],
        assigned_to="ann",
        created_at=now - timedelta(days=2),
        started_at=now - timedelta(days=1),
        estimated_effort_hours=12.5,
        eta=now + timedelta(days=3),
        time_entries=[
            TimeEntry(start=now - timedelta(hours=5), end=now - timedelta(hours=4), duration_seconds=3600),
            TimeEntry(start=now - timedelta(minutes=10)),
        ],
        total_time_seconds=3600,
        notes="[2024-01-01 10:00] one\n[2024-01-02 11:00] two",
    )
    closed = add(
        file_store,
        "Closed",
        status=TaskStatus.CANCELLED,
        completed_at=now - timedelta(hours=2),
        cancelled_at=now - timedelta(hours=1),
    )

    reloaded = TaskStore.at_path(file_store.path)
    reloaded.load()
    assert reloaded.all_tasks() == file_store.all_tasks()
    assert [t.id for t in reloaded] == [parent.id, full.id, closed.id]
    assert reloaded.require_task(full.id).active_time_entry() is not None


def test_invalid_utf8_raises_parse_error(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    path.write_bytes(b'[{"title": "\xff\xfe"}]')
    store = TaskStore.at_path(path)
    with pytest.raises(TaskParseError):
        store.load()


def test_file_is_pretty_printed_array_without_tmp_leftover(file_store: TaskStore) -> None:
    add(file_store, "One")
    path = file_store.path
    raw = path.read_text("utf-8")
    assert raw.startswith("[\n  {")
    data = json.loads(raw)
    assert data[0]["status"] == "not_started"
    assert not path.with_suffix(".json.tmp").exists()


def test_missing_optional_fields_default(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    tid = uuid.uuid4()
    path.write_text(
        json.dumps([{"id": str(tid), "title": "Old", "status": "completed", "created_at": "2024-01-01T10:00:00Z"}]),
        "utf-8",
    )
    store = TaskStore.at_path(path)
    store.load()
    task = store.require_task(tid)
    assert task.notes == ""
    assert task.tags == []
    assert task.time_entries == []
    assert task.total_time_seconds == 0
    assert task.created_at.tzinfo is not None


def test_every_mutation_writes_through(store: TaskStore, backend: MemoryTaskFile) -> None:
    task = add(store, "A")
    assert backend.saves == 1
    task.title = "A2"
    store.update_task(task)
    assert backend.saves == 2
    with store.edit_task(task.id) as t:
        t.start()
    assert backend.saves == 3
    store.delete_task(task.id)
    assert backend.saves == 4
    assert backend.saved == []


def test_edit_task_does_not_save_when_body_raises(store: TaskStore, backend: MemoryTaskFile) -> None:
    task = add(store, "A")
    saves = backend.saves
    with pytest.raises(RuntimeError):
        with store.edit_task(task.id):
            raise RuntimeError("boom")
    assert backend.saves == saves


def test_update_and_delete_missing_raise_not_found(store: TaskStore) -> None:
    with pytest.raises(NotFoundError):
        store.update_task(Task.new("ghost"))
    with pytest.raises(NotFoundError):
        store.delete_task(uuid.uuid4())
    assert store.get_task(uuid.uuid4()) is None


def test_roots_and_children_keep_store_order(store: TaskStore) -> None:
    a = add(store, "A")
    b = add(store, "B", a)
    c = add(store, "C", a)
    d = add(store, "D")
    assert [t.id for t in store.get_root_tasks()] == [a.id, d.id]
    assert [t.id for t in store.get_children(a.id)] == [b.id, c.id]
    assert store.children_index() == {a.id: [b.id, c.id]}
    assert store.has_children(a.id)
    assert not store.has_children(d.id)


def test_hierarchy_is_root_first(store: TaskStore) -> None:
    a = add(store, "A")
    b = add(store, "B", a)
    c = add(store, "C", b)
    assert store.get_task_hierarchy(c) == [a.id, b.id, c.id]
    assert store.task_depth(c) == 2
    assert store.task_depth(a) == 0


def test_hierarchy_includes_dangling_parent(store: TaskStore) -> None:
    missing = uuid.uuid4()
    orphan = add(store, "Orphan", parent_id=missing)
    assert store.get_task_hierarchy(orphan) == [missing, orphan.id]


def test_hierarchy_stops_on_cycle(store: TaskStore) -> None:
    a = add(store, "A")
    b = add(store, "B", a)
    a.parent_id = b.id
    chain = store.get_task_hierarchy(b)
    assert chain == [a.id, b.id]


def test_delete_parent_leaves_orphans(store: TaskStore) -> None:
    a = add(store, "A")
    b = add(store, "B", a)
    store.delete_task(a.id)
    assert store.get_task(b.id) is not None
    assert b.parent_id == a.id
    assert store.get_root_tasks() == []


def test_short_id_lookup(store: TaskStore) -> None:
    a = add(store, "A")
    assert store.find_task_by_short_id(a.short_id) is a
    assert store.find_task_by_short_id(a.short_id.upper()) is a
    assert store.find_task_by_short_id("00000000") is None


def test_version_bumps_on_load_and_mutation(store: TaskStore) -> None:
    before = store.version
    add(store, "A")
    assert store.version > before
    before = store.version
    store.load()
    assert store.version > before
