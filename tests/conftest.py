"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

import heft.storage as storage
from heft.settings import Settings


@pytest.fixture
def isolate_storage(tmp_path, monkeypatch):
    """Redirect storage to a temp directory."""
    data_dir = tmp_path / "heft_data"
    data_dir.mkdir()
    history_file = data_dir / "history.json"
    monkeypatch.setattr(storage, "HISTORY_FILE", history_file)
    monkeypatch.setattr(storage, "_DATA_DIR", data_dir)
    return history_file


@pytest.fixture(autouse=True)
def isolate_settings(tmp_path, monkeypatch):
    """Point settings at a temp config dir and reset the singleton."""
    config = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config))
    monkeypatch.setattr(Settings, "_instance", None)
    return config / "heft" / "settings.json"


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    """Make Path.home() return a fresh directory."""
    home = tmp_path / "home" / "u"
    home.mkdir(parents=True)
    monkeypatch.setattr(Path, "home", staticmethod(lambda: home))
    return home


def _make_file(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


@pytest.fixture
def make_file():
    """Return a helper that creates a file (and its parents) of a given size."""
    return _make_file


@pytest.fixture
def sample_tree(fake_home):
    """The home layout from the depth/exclusion example.

    ~/a.txt          100 bytes
    ~/docs/b.txt      50 bytes
    ~/.cache/c.txt  9999 bytes
    """
    _make_file(fake_home / "a.txt", 100)
    _make_file(fake_home / "docs" / "b.txt", 50)
    _make_file(fake_home / ".cache" / "c.txt", 9999)
    return fake_home
