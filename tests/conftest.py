# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from twig.config import Settings
from twig.tasks.task_models import Task
from twig.tasks.task_store import TaskStore

from .fakes import MemoryTaskFile


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings pointing at a per-test data dir.

    Built directly rather than from the environment so a developer's .env
    or TWIG_* variables never leak into tests.
    """
    return Settings(
        app_name="twig-test",
        log_level="WARNING",
        log_to_file=False,
        data_dir=tmp_path / "data",
        show_completed=True,
        show_cancelled=False,
    )


@pytest.fixture()
def backend() -> MemoryTaskFile:
    return MemoryTaskFile()


@pytest.fixture()
def store(backend: MemoryTaskFile) -> TaskStore:
    """Empty in-memory store; saves land in `backend`."""
    s = TaskStore(backend)
    s.load()
    return s


@pytest.fixture()
def file_store(tmp_path: Path) -> TaskStore:
    """Store backed by a real JSON file under tmp_path."""
    s = TaskStore.at_path(tmp_path / "tasks.json")
    s.load()
    return s


def add(store: TaskStore, title: str, parent: Task | None = None, **fields) -> Task:
    """Insert a task directly (no task_api parsing)."""
    task = Task.new(title)
    if parent is not None:
        task.parent_id = parent.id
    for name, value in fields.items():
        setattr(task, name, value)
    store.add_task(task)
    return task
