"""Caller-side scan/delete workflow with last-writer-wins scan publication."""

from __future__ import annotations

import dataclasses
import logging
import threading
from pathlib import Path
from typing import Callable, Iterable

from heft.core.deleter import DeletionExecutor
from heft.core.scanner import DirectoryScanner, ScanError
from heft.core.tracker import Tracker
from heft.models.deletion_outcome import DeletionOutcome, FailedDeletion
from heft.models.scan_result import ScanResult

log = logging.getLogger(__name__)

DoneCallback = Callable[[ScanResult], None]
ErrorCallback = Callable[[Exception], None]


class ScanSession:
    """Holds the visible ScanResult and the running freed-space total.

    Scans may overlap. Each scan gets a generation number and only the
    most recently started scan may publish its result; older scans still
    run to completion but their results are discarded. Callers own the
    selection and pass it to :meth:`delete` explicitly.
    """

    def __init__(
        self,
        scanner: DirectoryScanner | None = None,
        executor: DeletionExecutor | None = None,
        tracker: Tracker | None = None,
    ) -> None:
        self.scanner = scanner or DirectoryScanner()
        self.executor = executor or DeletionExecutor()
        self.tracker = tracker
        self.freed_total = 0
        self._lock = threading.Lock()
        self._generation = 0
        self._published = 0
        self._thread: threading.Thread | None = None
        self._result: ScanResult | None = None
        self._error: Exception | None = None

    @property
    def result(self) -> ScanResult | None:
        with self._lock:
            return self._result

    @property
    def error(self) -> Exception | None:
        """Error of the latest published scan, if it failed."""
        with self._lock:
            return self._error

    @property
    def is_scanning(self) -> bool:
        with self._lock:
            return self._published < self._generation

    def start_scan(
        self,
        root_input: str | Path,
        max_depth: int,
        on_done: DoneCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> int:
        """Scan on a background thread and return the scan's generation.

        *on_done* / *on_error* run on the worker thread, and only if the
        scan is still the latest one when it finishes.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")

        generation = self._next_generation()
        thread = threading.Thread(
            target=self._run_scan,
            args=(generation, root_input, max_depth, on_done, on_error),
            name=f"heft-scan-{generation}",
            daemon=True,
        )
        with self._lock:
            self._thread = thread
        thread.start()
        return generation

    def scan(self, root_input: str | Path, max_depth: int) -> ScanResult:
        """Scan synchronously, publishing the result like :meth:`start_scan`.

        Raises:
            ScanError: If the root cannot be scanned.
        """
        generation = self._next_generation()
        try:
            result = self.scanner.scan(root_input, max_depth)
        except Exception as e:
            self._publish(generation, None, e)
            raise
        self._publish(generation, result, None)
        return result

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the latest background scan. Returns False on timeout."""
        with self._lock:
            thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def known_sizes(self, selection: Iterable[Path]) -> dict[Path, int]:
        """Recorded sizes for the selected paths present in the result."""
        result = self.result
        if result is None:
            return {}
        sizes = result.sizes()
        return {p: sizes[p] for p in selection if p in sizes}

    def delete(self, selection: Iterable[Path | str]) -> DeletionOutcome:
        """Delete *selection* and drop the removed files from the result.

        Only absolute paths listed in the current result are removed. Any
        other path is reported as a failure and left untouched.
        """
        paths = {Path(p) for p in selection}
        with self._lock:
            known = self._result.sizes() if self._result is not None else {}

        rejected: list[FailedDeletion] = []
        allowed: dict[Path, int] = {}
        for path in sorted(paths):
            if not path.is_absolute():
                rejected.append(FailedDeletion(path=path, reason="not an absolute path"))
            elif path not in known:
                rejected.append(FailedDeletion(path=path, reason="not in the current scan result"))
            else:
                allowed[path] = known[path]
        for failure in rejected:
            log.warning("Refusing to delete %s: %s", failure.path, failure.reason)

        outcome = self.executor.delete_all(allowed, allowed)
        if rejected:
            failures = sorted(rejected + list(outcome.failures), key=lambda f: f.path)
            outcome = dataclasses.replace(outcome, failures=tuple(failures))

        with self._lock:
            root = self._result.root if self._result is not None else None
            if self._result is not None and outcome.deleted:
                self._result = self._result.without(outcome.deleted)
            self.freed_total += outcome.bytes_freed

        if self.tracker is not None:
            self.tracker.record(outcome, root=root)
        return outcome

    def _next_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def _run_scan(
        self,
        generation: int,
        root_input: str | Path,
        max_depth: int,
        on_done: DoneCallback | None,
        on_error: ErrorCallback | None,
    ) -> None:
        try:
            result = self.scanner.scan(root_input, max_depth)
        except Exception as e:
            if isinstance(e, ScanError):
                log.info("Scan failed: %s", e)
            else:
                log.exception("Scan of %s failed", root_input)
            if self._publish(generation, None, e) and on_error:
                on_error(e)
            return
        if self._publish(generation, result, None) and on_done:
            on_done(result)

    def _publish(self, generation: int, result: ScanResult | None, error: Exception | None) -> bool:
        with self._lock:
            if generation != self._generation:
                log.info("Discarding stale scan %d (latest is %d)", generation, self._generation)
                return False
            self._result = result
            self._error = error
            self._published = generation
            return True
