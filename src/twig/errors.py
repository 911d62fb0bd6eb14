# src/twig/errors.py

"""
Error kinds raised by the core.

Core functions raise these; only the CLI decides how to surface them
(message on stderr + exit status).
"""

from __future__ import annotations


class TwigError(Exception):
    """Base class for all expected (user-facing) failures."""


class NotFoundError(TwigError):
    """Identifier resolution or task lookup found nothing."""


class InvalidFormatError(TwigError, ValueError):
    """Malformed identifier, date or effort string."""


class HierarchyCycleError(InvalidFormatError):
    """A parent assignment would make a task its own ancestor."""


class StorageIOError(TwigError):
    """A data file could not be read or written."""


class TaskParseError(TwigError):
    """Persisted content is not valid task JSON."""


class SerializationError(TwigError):
    """In-memory data could not be encoded for persistence."""


class ConfigParseError(TwigError):
    """config.json is not valid JSON or holds unknown values."""
