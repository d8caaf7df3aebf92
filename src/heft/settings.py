"""Generic JSON-backed settings store."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from heft.models.scan_result import DEFAULT_RESULT_LIMIT
from heft.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "heft"
_SETTINGS_FILE = "settings.json"

DEFAULT_DEPTH = 3

DEFAULTS: dict[str, Any] = {
    "scan.default_depth": DEFAULT_DEPTH,
    "scan.result_limit": DEFAULT_RESULT_LIMIT,
    "scan.extra_excludes": [],
    "clean.confirm": True,
}


class Settings:
    """Persistent settings backed by a JSON file.

    Uses dot-notation keys for nested access:
        settings.get("scan.default_depth")  # reads data["scan"]["default_depth"]
        settings.set("scan.default_depth", 5)  # writes + saves

    Keys listed in ``DEFAULTS`` fall back to their default when unset.
    """

    _instance: Settings | None = None

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or (xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE)
        self._data: dict[str, Any] = {}
        self._load()

    @classmethod
    def instance(cls) -> Settings:
        """Return the singleton settings instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key."""
        if default is None:
            default = DEFAULTS.get(key)
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a value by dot-notation key and persist to disk."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    # -- Typed accessors --

    def default_depth(self) -> int:
        return self._non_negative_int("scan.default_depth")

    def result_limit(self) -> int:
        return self._non_negative_int("scan.result_limit")

    def extra_excludes(self) -> list[str]:
        value = self.get("scan.extra_excludes")
        if not isinstance(value, list):
            log.warning("Ignoring invalid scan.extra_excludes: %r", value)
            return []
        return [v for v in value if isinstance(v, str)]

    def confirm_before_clean(self) -> bool:
        return bool(self.get("clean.confirm"))

    def _non_negative_int(self, key: str) -> int:
        value = self.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            log.warning("Ignoring invalid %s: %r", key, value)
            return DEFAULTS[key]
        return value

    def _load(self) -> None:
        """Load settings from disk, gracefully handling errors."""
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if isinstance(data, dict):
            self._data = data
        else:
            log.warning("Settings file %s does not contain an object", self._path)

    def _save(self) -> None:
        """Persist settings to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)
