# src/twig/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- ensures the data directory layout exists,
- loads the owner config,
- opens and loads the target TaskStore (fatal on failure),
- opens reportee stores best-effort for multi-owner views.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.state import AppState
from ..errors import TwigError
from ..storage.owner_config import load_config
from ..storage.paths import DataPaths, validate_reportee_name
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def open_store(paths: DataPaths, owner: str | None = None) -> TaskStore:
    """Open and load one owner's store. Load errors propagate."""
    if owner is None:
        store = TaskStore.at_path(paths.tasks_file)
    else:
        store = TaskStore.at_path(paths.reportee_tasks_file(owner), owner=validate_reportee_name(owner))
    store.load()
    return store


def open_reportee_stores(paths: DataPaths, names: list[str]) -> dict[str, TaskStore]:
    """
    Load every reportee's store.

    A reportee whose file cannot be read or parsed shows up as an empty
    store instead of aborting the whole view.
    """
    stores: dict[str, TaskStore] = {}
    for name in names:
        try:
            stores[name] = open_store(paths, name)
        except TwigError as e:
            logger.warning("Reportee %s could not be loaded, showing it empty: %s", name, e)
            try:
                stores[name] = TaskStore.at_path(paths.reportee_tasks_file(name), owner=name)
            except TwigError:
                logger.warning("Skipping reportee with invalid name %r", name)
    return stores


def create_initial_state(
    *,
    settings: Settings | None = None,
    reportee: str | None = None,
    with_reportees: bool = False,
) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    paths = DataPaths(settings.data_dir)
    config = load_config(paths.config_file)
    if reportee is not None and reportee not in config.reportees:
        logger.warning("Reportee %s is not in config.json", reportee)

    state = AppState(
        settings=settings,
        paths=paths,
        config=config,
        store=open_store(paths, reportee),
    )
    if with_reportees:
        state.reportee_stores = open_reportee_stores(paths, config.reportees)
    logger.debug(
        "State ready data_dir=%s owner=%s tasks=%d",
        paths.base_dir,
        reportee or "-",
        len(state.store),
    )
    return state
