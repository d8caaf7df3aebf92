"""JSON file storage for deletion history.

The history file holds ``{"sessions": [...]}`` where each session is
``{"timestamp": <ISO 8601, UTC>, "details": [{"root", "bytes_freed",
"files_removed", "failures"}, ...]}``. Entries that do not fit this shape
are dropped on load so readers never see them.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from heft.utils import xdg_data_home

log = logging.getLogger(__name__)

_DATA_DIR = xdg_data_home() / "heft"

HISTORY_FILE = _DATA_DIR / "history.json"

_COUNTERS = ("bytes_freed", "files_removed", "failures")


def _ensure_data_dir() -> None:
    """Create the data directory if it doesn't exist."""
    _DATA_DIR.mkdir(parents=True, exist_ok=True)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a timezone-aware ISO timestamp, or return None."""
    if not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    return dt if dt.tzinfo is not None else None


def _clean_detail(detail: Any) -> dict[str, Any] | None:
    if not isinstance(detail, dict):
        return None
    cleaned: dict[str, Any] = {"root": detail.get("root") if isinstance(detail.get("root"), str) else None}
    for key in _COUNTERS:
        value = detail.get(key, 0)
        cleaned[key] = value if isinstance(value, int) and not isinstance(value, bool) else 0
    return cleaned


def _clean_session(session: Any) -> dict[str, Any] | None:
    """Return a normalized copy of *session*, or None if it is unusable."""
    if not isinstance(session, dict) or parse_timestamp(session.get("timestamp")) is None:
        return None
    details = session.get("details")
    if not isinstance(details, list):
        return None
    cleaned = [d for d in map(_clean_detail, details) if d is not None]
    return {"timestamp": session["timestamp"], "details": cleaned}


def load_history() -> dict[str, Any]:
    """Load the history file, returning empty structure if missing."""
    if not HISTORY_FILE.exists():
        return {"sessions": []}
    try:
        with open(HISTORY_FILE) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        log.exception("Failed to load history file: %s", HISTORY_FILE)
        return {"sessions": []}
    if not isinstance(data, dict) or not isinstance(data.get("sessions"), list):
        log.warning("Ignoring malformed history file: %s", HISTORY_FILE)
        return {"sessions": []}

    sessions = [s for s in map(_clean_session, data["sessions"]) if s is not None]
    dropped = len(data["sessions"]) - len(sessions)
    if dropped:
        log.warning("Skipped %d malformed session(s) in %s", dropped, HISTORY_FILE)
    return {"sessions": sessions}


def save_history(data: dict[str, Any]) -> None:
    """Write the history data to disk."""
    _ensure_data_dir()
    try:
        with open(HISTORY_FILE, "w") as f:
            json.dump(data, f, indent=2)
    except OSError:
        log.exception("Failed to save history file: %s", HISTORY_FILE)
