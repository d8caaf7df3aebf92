"""Scan result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

DEFAULT_RESULT_LIMIT = 1000


@dataclass(frozen=True, slots=True)
class FileEntry:
    """Single regular file discovered during a scan.

    ``size_bytes`` is captured when the file is stat'ed and is never
    refreshed afterwards.
    """

    path: Path
    size_bytes: int

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Files found under a scan root, largest first.

    Instances are built once at the end of a walk and never mutated.
    Use :meth:`without` to derive the result that remains after a
    deletion batch.
    """

    root: Path
    max_depth: int
    entries: tuple[FileEntry, ...] = ()
    files_seen: int = 0
    elapsed: float = 0.0
    limit: int = field(default=DEFAULT_RESULT_LIMIT, repr=False)

    @classmethod
    def build(
        cls,
        root: Path,
        max_depth: int,
        found: Iterable[FileEntry],
        *,
        limit: int = DEFAULT_RESULT_LIMIT,
        elapsed: float = 0.0,
    ) -> ScanResult:
        """Sort *found* by size (descending, stable) and cap it at *limit*."""
        ordered = sorted(found, key=lambda e: e.size_bytes, reverse=True)
        return cls(
            root=root,
            max_depth=max_depth,
            entries=tuple(ordered[:limit]),
            files_seen=len(ordered),
            elapsed=elapsed,
            limit=limit,
        )

    @property
    def total_bytes(self) -> int:
        return sum(e.size_bytes for e in self.entries)

    @property
    def truncated(self) -> bool:
        """True when more files were found than the result can hold."""
        return self.files_seen > len(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def get(self, path: Path) -> FileEntry | None:
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None

    def sizes(self) -> dict[Path, int]:
        """Map each entry's path to its recorded size."""
        return {e.path: e.size_bytes for e in self.entries}

    def without(self, paths: Iterable[Path]) -> ScanResult:
        """Return a copy with the given paths dropped, order preserved."""
        drop = set(paths)
        kept = tuple(e for e in self.entries if e.path not in drop)
        return ScanResult(
            root=self.root,
            max_depth=self.max_depth,
            entries=kept,
            files_seen=self.files_seen - (len(self.entries) - len(kept)),
            elapsed=self.elapsed,
            limit=self.limit,
        )
