# tests/test_config_and_storage.py

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from twig.cli.bootstrap import create_initial_state, open_reportee_stores
from twig.config import Settings
from twig.errors import ConfigParseError, InvalidFormatError, TaskParseError
from twig.logging_setup import setup_logging
from twig.storage.owner_config import OwnerConfig, ViewMode, load_config, save_config
from twig.storage.paths import DataPaths, validate_reportee_name


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TWIG_DATA_DIR", str(tmp_path / "d"))
    monkeypatch.setenv("TWIG_LOG_LEVEL", "debug")
    monkeypatch.setenv("TWIG_SHOW_CANCELLED", "yes")
    monkeypatch.setenv("TWIG_LOG_TO_FILE", "0")
    monkeypatch.delenv("TWIG_SHOW_COMPLETED", raising=False)

    s = Settings.from_env(dotenv=False)
    assert s.data_dir == tmp_path / "d"
    assert s.log_level == "DEBUG"
    assert s.show_cancelled is True
    assert s.show_completed is True
    assert s.log_to_file is False


def test_settings_default_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("TWIG_DATA_DIR", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert Settings.from_env(dotenv=False).data_dir == tmp_path / ".twig"


def test_data_paths_layout(tmp_path: Path) -> None:
    paths = DataPaths(tmp_path / "base")
    assert paths.reportees_dir.is_dir()
    assert paths.tasks_file == tmp_path / "base" / "tasks.json"
    assert paths.reportee_tasks_file("ann") == paths.reportees_dir / "ann.json"


@pytest.mark.parametrize("name", ["", "  ", "../x", "a/b", ".hidden"])
def test_reportee_name_validation(name: str) -> None:
    with pytest.raises(InvalidFormatError):
        validate_reportee_name(name)


def test_config_created_on_first_load(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    config = load_config(path)
    assert config == OwnerConfig()
    assert json.loads(path.read_text("utf-8")) == {"reportees": [], "default_view": "tree"}


def test_config_roundtrip_and_reportee_edits(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    config = OwnerConfig(default_view=ViewMode.LIST)
    assert config.add_reportee("ann")
    assert not config.add_reportee("ann")
    assert config.add_reportee("bob")
    assert config.remove_reportee("ann")
    assert not config.remove_reportee("zed")
    save_config(path, config)
    assert load_config(path) == OwnerConfig(reportees=["bob"], default_view=ViewMode.LIST)


@pytest.mark.parametrize("content", [b"nope", b'{"default_view": "grid"}', b'{"reportees": ["\xff"]}'])
def test_bad_config_raises(tmp_path: Path, content: bytes) -> None:
    path = tmp_path / "config.json"
    path.write_bytes(content)
    with pytest.raises(ConfigParseError, match="Invalid config file"):
        load_config(path)


def test_create_initial_state(settings: Settings) -> None:
    state = create_initial_state(settings=settings)
    assert state.store.path == settings.data_dir / "tasks.json"
    assert state.store.owner is None
    assert state.config.reportees == []
    assert state.reportee_stores == {}


def test_primary_store_parse_error_is_fatal(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True)
    (settings.data_dir / "tasks.json").write_text("{", "utf-8")
    with pytest.raises(TaskParseError):
        create_initial_state(settings=settings)


def test_broken_reportee_loads_empty(tmp_path: Path, caplog) -> None:
    paths = DataPaths(tmp_path)
    paths.reportee_tasks_file("ann").write_text("[oops", "utf-8")
    with caplog.at_level(logging.WARNING, logger="twig.cli.bootstrap"):
        stores = open_reportee_stores(paths, ["ann", "bob"])
    assert set(stores) == {"ann", "bob"}
    assert len(stores["ann"]) == 0
    assert stores["ann"].owner == "ann"
    assert "ann could not be loaded" in caplog.text


def test_reportee_with_invalid_utf8_loads_empty(tmp_path: Path) -> None:
    paths = DataPaths(tmp_path)
    paths.reportee_tasks_file("bob").write_bytes(b"[\xff]")
    stores = open_reportee_stores(paths, ["bob"])
    assert len(stores["bob"]) == 0


@pytest.fixture()
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def test_setup_logging_writes_file(tmp_path: Path, restore_logging) -> None:
    setup_logging(log_dir=tmp_path, console_level=logging.ERROR)
    logging.getLogger("twig.test").debug("hello file")
    for h in logging.getLogger().handlers:
        h.flush()
    assert "hello file" in (tmp_path / "twig.log").read_text("utf-8")


def test_setup_logging_without_dir_has_no_file(tmp_path: Path, restore_logging) -> None:
    setup_logging(console_level=logging.WARNING)
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert not any(isinstance(h, logging.FileHandler) for h in handlers)
