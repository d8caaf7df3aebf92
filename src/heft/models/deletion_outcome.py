"""Deletion outcome dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class FailedDeletion:
    """A selected file that could not be removed."""

    path: Path
    reason: str

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class DeletionOutcome:
    """Result of one deletion batch."""

    bytes_freed: int = 0
    deleted: tuple[Path, ...] = ()
    failures: tuple[FailedDeletion, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def files_removed(self) -> int:
        return len(self.deleted)

    @property
    def failed_paths(self) -> list[str]:
        """Display names of the files that could not be removed."""
        return [f.name for f in self.failures]

    def summary_message(self) -> str:
        """Single user-facing message describing the failures, or ''."""
        if not self.failures:
            return ""
        names = ", ".join(self.failed_paths)
        return (
            f"Failed to delete some files: {names}. "
            "You might not have permission to delete these files."
        )
