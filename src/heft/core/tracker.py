"""Tracks freed space across deletion batches and sessions."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from heft.models.deletion_outcome import DeletionOutcome
from heft.storage import load_history, parse_timestamp, save_history

log = logging.getLogger(__name__)


class Tracker:
    """Tracks and persists deletion statistics.

    Only deletion totals are written to history; scan results are never
    persisted.
    """

    def __init__(self) -> None:
        self._session_outcomes: list[tuple[Path | None, DeletionOutcome]] = []

    @property
    def session_bytes_freed(self) -> int:
        """Total bytes freed in the current session."""
        return sum(o.bytes_freed for _, o in self._session_outcomes)

    @property
    def session_files_removed(self) -> int:
        """Total files removed in the current session."""
        return sum(o.files_removed for _, o in self._session_outcomes)

    def record(self, outcome: DeletionOutcome, root: Path | None = None) -> None:
        """Record one deletion batch, optionally tagged with its scan root."""
        self._session_outcomes.append((root, outcome))

    def get_last_clean_time(self) -> str | None:
        """Return ISO timestamp of the most recent session, or None."""
        sessions = _dated_sessions(load_history().get("sessions", []))
        return sessions[-1][1]["timestamp"] if sessions else None

    def save_session(self) -> None:
        """Persist the current session to history."""
        if not self._session_outcomes:
            return

        history = load_history()
        session_entry = self._build_session_entry()
        history["sessions"].append(session_entry)
        save_history(history)

        log.info(
            "Saved session: %d bytes freed in %d batches",
            _session_bytes(session_entry),
            len(session_entry["details"]),
        )
        self._session_outcomes.clear()

    def get_stats(self, period: str = "all") -> dict[str, Any]:
        """Get aggregated statistics for a time period.

        Args:
            period: One of 'today', 'week', 'month', 'all'.
        """
        dated = _dated_sessions(load_history().get("sessions", []))
        all_sessions = [s for _, s in dated]

        match period:
            case "today":
                cutoff = _start_of_today()
            case "week":
                cutoff = _start_of_today() - timedelta(days=7)
            case "month":
                cutoff = _start_of_today() - timedelta(days=30)
            case _:
                cutoff = None

        if cutoff is not None:
            sessions = [s for when, s in dated if when >= cutoff]
        else:
            sessions = all_sessions

        return {
            "period": period,
            "bytes_freed": sum(_session_bytes(s) for s in sessions),
            "files_removed": sum(_session_files(s) for s in sessions),
            "failures": sum(_session_failures(s) for s in sessions),
            "session_count": len(sessions),
            "lifetime_bytes_freed": sum(_session_bytes(s) for s in all_sessions),
            "per_root": self._aggregate_root_stats(sessions),
        }

    def _build_session_entry(self) -> dict[str, Any]:
        """Build a session record from current outcomes."""
        details = [
            {
                "root": str(root) if root else None,
                "bytes_freed": o.bytes_freed,
                "files_removed": o.files_removed,
                "failures": len(o.failures),
            }
            for root, o in self._session_outcomes
        ]
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details,
        }

    @staticmethod
    def _aggregate_root_stats(sessions: list[dict[str, Any]]) -> dict[str, dict[str, int]]:
        """Aggregate per-root statistics across sessions."""
        totals: dict[str, dict[str, int]] = {}
        for session in sessions:
            for detail in session.get("details", []):
                root = detail.get("root") or "unknown"
                if root not in totals:
                    totals[root] = {"bytes_freed": 0, "files_removed": 0}
                totals[root]["bytes_freed"] += detail.get("bytes_freed", 0)
                totals[root]["files_removed"] += detail.get("files_removed", 0)
        return totals


def _dated_sessions(sessions: list[Any]) -> list[tuple[datetime, dict[str, Any]]]:
    """Pair each session with its parsed timestamp, skipping undated ones."""
    dated = []
    for session in sessions:
        when = parse_timestamp(session.get("timestamp")) if isinstance(session, dict) else None
        if when is None:
            log.debug("Skipping history session without a valid timestamp")
            continue
        dated.append((when, session))
    return dated


def _session_bytes(session: dict[str, Any]) -> int:
    """Derive total bytes freed from a session's details."""
    return sum(d.get("bytes_freed", 0) for d in session.get("details", []))


def _session_files(session: dict[str, Any]) -> int:
    """Derive total files removed from a session's details."""
    return sum(d.get("files_removed", 0) for d in session.get("details", []))


def _session_failures(session: dict[str, Any]) -> int:
    return sum(d.get("failures", 0) for d in session.get("details", []))


def _start_of_today() -> datetime:
    """Return the start of the current UTC day."""
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)
