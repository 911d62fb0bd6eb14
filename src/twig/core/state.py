# src/twig/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..config import Settings
from ..storage.owner_config import OwnerConfig
from ..storage.paths import DataPaths
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    """
    Everything one command invocation works on.

    `store` is the store the command targets: the primary user's, or a
    reportee's when the CLI was called with --reportee.
    """

    settings: Settings
    paths: DataPaths
    config: OwnerConfig
    store: TaskStore

    reportee_stores: dict[str, TaskStore] = field(default_factory=dict)
