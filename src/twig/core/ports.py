# src/twig/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The store depends on a Protocol instead of a concrete file adapter, so tests
can hand it an in-memory persistence and other formats stay pluggable.
"""

from pathlib import Path
from typing import Protocol

from ..tasks.task_models import Task


class TaskPersistence(Protocol):
    """Opaque load/save collaborator behind a TaskStore."""

    @property
    def path(self) -> Path | None: ...

    def load(self) -> list[Task]: ...

    def save(self, tasks: list[Task]) -> None: ...
