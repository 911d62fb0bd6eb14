# src/twig/storage/paths.py

from __future__ import annotations

from pathlib import Path

from ..errors import InvalidFormatError, StorageIOError


def validate_reportee_name(name: str) -> str:
    clean = name.strip()
    if not clean or clean.startswith(".") or "/" in clean or "\\" in clean:
        raise InvalidFormatError(f"Invalid reportee name: {name!r}")
    return clean


class DataPaths:
    """
    On-disk layout under one data directory:

        <base>/tasks.json            primary owner's tasks
        <base>/config.json           reportees + default view
        <base>/reportees/<name>.json one file per reportee

    Directories are created on construction.
    """

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            self.reportees_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Failed to create data directory {self.base_dir}: {e}") from e

    @property
    def reportees_dir(self) -> Path:
        return self.base_dir / "reportees"

    @property
    def tasks_file(self) -> Path:
        return self.base_dir / "tasks.json"

    @property
    def config_file(self) -> Path:
        return self.base_dir / "config.json"

    def reportee_tasks_file(self, name: str) -> Path:
        return self.reportees_dir / f"{validate_reportee_name(name)}.json"
