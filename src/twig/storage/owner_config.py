# src/twig/storage/owner_config.py

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from ..errors import ConfigParseError, StorageIOError

logger = logging.getLogger(__name__)


class ViewMode(StrEnum):
    TREE = "tree"
    LIST = "list"


@dataclass(slots=True)
class OwnerConfig:
    reportees: list[str] = field(default_factory=list)
    default_view: ViewMode = ViewMode.TREE

    def add_reportee(self, name: str) -> bool:
        if name in self.reportees:
            return False
        self.reportees.append(name)
        return True

    def remove_reportee(self, name: str) -> bool:
        if name not in self.reportees:
            return False
        self.reportees.remove(name)
        return True


def load_config(path: str | Path) -> OwnerConfig:
    """Read config.json; a missing file is created with defaults."""
    path = Path(path)
    if not path.exists():
        config = OwnerConfig()
        save_config(path, config)
        logger.info("Created default config at %s", path)
        return config

    try:
        raw = path.read_bytes()
    except OSError as e:
        raise StorageIOError(f"Failed to read config file {path}: {e}") from e

    try:
        data = json.loads(raw.decode("utf-8"))
        reportees = [str(r) for r in data.get("reportees") or []]
        default_view = ViewMode(data.get("default_view") or ViewMode.TREE)
    except (ValueError, TypeError, AttributeError) as e:
        raise ConfigParseError(f"Invalid config file {path}: {e}") from e
    return OwnerConfig(reportees=reportees, default_view=default_view)


def save_config(path: str | Path, config: OwnerConfig) -> None:
    path = Path(path)
    payload = json.dumps(
        {"reportees": config.reportees, "default_view": config.default_view.value},
        ensure_ascii=False,
        indent=2,
    )
    tmp = path.with_suffix(".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(payload, "utf-8")
        os.replace(tmp, path)
    except OSError as e:
        raise StorageIOError(f"Failed to write config file {path}: {e}") from e
