"""Batch deletion of selected files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping

from heft.models.deletion_outcome import DeletionOutcome, FailedDeletion

log = logging.getLogger(__name__)


class DeletionExecutor:
    """Removes selected files one by one, tolerating individual failures.

    Freed space is accounted from the sizes recorded at scan time rather
    than from a fresh stat, so the tally can be stale if a file changed
    after the scan.
    """

    def delete_all(
        self,
        selection: Iterable[Path | str],
        known_sizes: Mapping[Path, int] | None = None,
    ) -> DeletionOutcome:
        """Delete every path in *selection* and report what happened.

        Paths are processed in sorted order. A failure on one path is
        recorded and never stops the rest of the batch.
        """
        sizes = known_sizes or {}
        freed = 0
        deleted: list[Path] = []
        failures: list[FailedDeletion] = []

        for path in sorted({Path(p) for p in selection}):
            try:
                self._remove(path)
            except OSError as e:
                reason = e.strerror or str(e)
                log.warning("Could not delete %s: %s", path, reason)
                failures.append(FailedDeletion(path=path, reason=reason))
                continue
            freed += sizes.get(path, 0)
            deleted.append(path)
            log.debug("Deleted %s", path)

        if deleted:
            log.info("Deleted %d files, freed %d bytes", len(deleted), freed)
        return DeletionOutcome(bytes_freed=freed, deleted=tuple(deleted), failures=tuple(failures))

    @staticmethod
    def _remove(path: Path) -> None:
        # Only regular files and symlinks; unlink() refuses directories.
        path.unlink()


def delete_all(selection: Iterable[Path | str], known_sizes: Mapping[Path, int] | None = None) -> DeletionOutcome:
    """Delete *selection* with a default :class:`DeletionExecutor`."""
    return DeletionExecutor().delete_all(selection, known_sizes)
