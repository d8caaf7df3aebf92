"""Heft data models."""

from heft.models.scan_result import DEFAULT_RESULT_LIMIT, FileEntry, ScanResult
from heft.models.deletion_outcome import DeletionOutcome, FailedDeletion

__all__ = [
    "DEFAULT_RESULT_LIMIT",
    "DeletionOutcome",
    "FailedDeletion",
    "FileEntry",
    "ScanResult",
]
