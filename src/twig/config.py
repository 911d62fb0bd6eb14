# src/twig/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object per process, built once at the CLI entrypoint.
- Settings are injectable: tests and embedding code build their own.
- Reportees and the default view live in the data dir's config.json,
  not here (see storage/owner_config.py).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TWIG"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _default_data_dir() -> Path:
    home = os.getenv("HOME") or os.getenv("USERPROFILE")
    base = Path(home) if home else Path.home()
    return base / ".twig"


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_to_file: bool

    # ---- Local data ----
    data_dir: Path

    # ---- Interactive view defaults ----
    show_completed: bool
    show_cancelled: bool

    @staticmethod
    def from_env(*, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv(override=False)

        return Settings(
            app_name=_env(_k("APP_NAME"), "twig") or "twig",
            log_level=_env(_k("LOG_LEVEL"), "WARNING").upper(),
            log_to_file=_env_bool(_k("LOG_TO_FILE"), True),
            data_dir=_env_path(_k("DATA_DIR"), _default_data_dir()),
            show_completed=_env_bool(_k("SHOW_COMPLETED"), True),
            show_cancelled=_env_bool(_k("SHOW_CANCELLED"), False),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
