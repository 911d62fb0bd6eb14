# src/twig/tasks/resolver.py

from __future__ import annotations

import logging
import uuid

from ..errors import InvalidFormatError, NotFoundError
from .task_models import SHORT_ID_LEN, Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def resolve_task_id(store: TaskStore, token: str) -> uuid.UUID:
    """
    Map a user token to a task id.

    An 8-character token is a short id looked up in the store (first match
    wins). Anything else must parse as a full UUID; it is returned whether or
    not the store holds it.
    """
    token = token.strip()
    if len(token) == SHORT_ID_LEN:
        matches = store.find_tasks_by_short_id(token)
        if not matches:
            raise NotFoundError(f"Task not found: {token}")
        if len(matches) > 1:
            logger.warning(
                "Short id %s matches %d tasks, using the first (%s)",
                token,
                len(matches),
                matches[0].id,
            )
        return matches[0].id
    try:
        return uuid.UUID(token)
    except ValueError:
        raise InvalidFormatError(f"Invalid task id: {token!r}") from None


def resolve_task(store: TaskStore, token: str) -> Task:
    return store.require_task(resolve_task_id(store, token))
