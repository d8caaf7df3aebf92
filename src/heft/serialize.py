"""JSON-ready dict conversion shared by the CLI and the D-Bus service."""

from __future__ import annotations

from typing import Any

from heft.models.deletion_outcome import DeletionOutcome
from heft.models.scan_result import ScanResult


def result_to_dict(result: ScanResult) -> dict[str, Any]:
    return {
        "root": str(result.root),
        "max_depth": result.max_depth,
        "files_seen": result.files_seen,
        "truncated": result.truncated,
        "total_bytes": result.total_bytes,
        "entries": [
            {"path": str(e.path), "name": e.name, "size_bytes": e.size_bytes}
            for e in result.entries
        ],
    }


def outcome_to_dict(outcome: DeletionOutcome) -> dict[str, Any]:
    return {
        "bytes_freed": outcome.bytes_freed,
        "deleted": [str(p) for p in outcome.deleted],
        "failed": [
            {"path": str(f.path), "name": f.name, "reason": f.reason}
            for f in outcome.failures
        ],
    }
