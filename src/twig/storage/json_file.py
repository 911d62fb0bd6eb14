# src/twig/storage/json_file.py

from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..errors import SerializationError, StorageIOError, TaskParseError
from ..tasks.task_models import Task, TaskStatus, TimeEntry

logger = logging.getLogger(__name__)


def _dt_to_str(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def _str_to_dt(raw: Any) -> datetime | None:
    if raw is None:
        return None
    dt = datetime.fromisoformat(str(raw))
    # Older files may carry naive timestamps; they were always written in UTC.
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def _uuid_or_none(raw: Any) -> uuid.UUID | None:
    return uuid.UUID(str(raw)) if raw else None


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": str(task.id),
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "parent_id": str(task.parent_id) if task.parent_id else None,
        "tags": list(task.tags),
        "assigned_to": task.assigned_to,
        "created_at": _dt_to_str(task.created_at),
        "started_at": _dt_to_str(task.started_at),
        "completed_at": _dt_to_str(task.completed_at),
        "cancelled_at": _dt_to_str(task.cancelled_at),
        "estimated_effort_hours": task.estimated_effort_hours,
        "eta": _dt_to_str(task.eta),
        "time_entries": [
            {
                "start": _dt_to_str(e.start),
                "end": _dt_to_str(e.end),
                "duration_seconds": e.duration_seconds,
            }
            for e in task.time_entries
        ],
        "total_time_seconds": task.total_time_seconds,
        "notes": task.notes,
    }


def task_from_dict(raw: dict[str, Any]) -> Task:
    """
    Build a Task from its JSON object.

    Optional fields may be absent (older files): they fall back to the same
    defaults a new task gets. Required: id, title, status, created_at.
    """
    estimate = raw.get("estimated_effort_hours")
    entries = [
        TimeEntry(
            start=_str_to_dt(e["start"]),  # type: ignore[arg-type]
            end=_str_to_dt(e.get("end")),
            duration_seconds=int(e["duration_seconds"]) if e.get("duration_seconds") is not None else None,
        )
        for e in raw.get("time_entries") or []
    ]
    return Task(
        id=uuid.UUID(str(raw["id"])),
        title=str(raw["title"]),
        description=str(raw.get("description") or ""),
        status=TaskStatus(raw["status"]),
        parent_id=_uuid_or_none(raw.get("parent_id")),
        tags=[str(t) for t in raw.get("tags") or []],
        assigned_to=raw.get("assigned_to"),
        created_at=_str_to_dt(raw["created_at"]),  # type: ignore[arg-type]
        started_at=_str_to_dt(raw.get("started_at")),
        completed_at=_str_to_dt(raw.get("completed_at")),
        cancelled_at=_str_to_dt(raw.get("cancelled_at")),
        estimated_effort_hours=float(estimate) if estimate is not None else None,
        eta=_str_to_dt(raw.get("eta")),
        time_entries=entries,
        total_time_seconds=int(raw.get("total_time_seconds") or 0),
        notes=str(raw.get("notes") or ""),
    )


class JsonTaskFile:
    """
    Pretty-printed JSON array of task objects.

    Writes go to a sibling temp file and are moved into place with
    os.replace, so readers never observe a half-written file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Task]:
        if not self._path.exists():
            logger.debug("No tasks file at %s, starting empty", self._path)
            return []
        try:
            raw = self._path.read_bytes()
        except OSError as e:
            raise StorageIOError(f"Failed to read tasks file {self._path}: {e}") from e

        try:
            # UnicodeDecodeError is a ValueError: bad bytes are a parse failure.
            content = raw.decode("utf-8")
            if not content.strip():
                return []
            data = json.loads(content)
            if not isinstance(data, list):
                raise TypeError("top-level value is not an array")
            tasks = [task_from_dict(item) for item in data]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise TaskParseError(f"Failed to parse tasks JSON {self._path}: {e}") from e

        logger.debug("Loaded %d tasks from %s", len(tasks), self._path)
        return tasks

    def save(self, tasks: list[Task]) -> None:
        try:
            payload = json.dumps([task_to_dict(t) for t in tasks], ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize tasks: {e}") from e

        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise StorageIOError(f"Failed to write tasks file {self._path}: {e}") from e
        logger.debug("Saved %d tasks to %s", len(tasks), self._path)
