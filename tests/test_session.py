"""Tests for the scan/delete session."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from heft.core.scanner import RootNotFoundError
from heft.core.session import ScanSession
from heft.core.tracker import Tracker
from heft.models.scan_result import FileEntry, ScanResult


class GatedScanner:
    """Scanner stand-in whose scans block until released per root."""

    def __init__(self) -> None:
        self.gates: dict[str, threading.Event] = {}
        self.finished: dict[str, threading.Event] = {}

    def gate(self, root: str) -> threading.Event:
        self.finished.setdefault(root, threading.Event())
        return self.gates.setdefault(root, threading.Event())

    def scan(self, root_input, max_depth):
        self.gate(root_input).wait(5)
        try:
            return ScanResult.build(
                Path(root_input), max_depth, [FileEntry(Path(root_input) / "f", len(root_input))]
            )
        finally:
            self.finished[root_input].set()


class TestSynchronousScan:
    def test_scan_publishes_result(self, sample_tree):
        session = ScanSession()
        result = session.scan("~", 1)
        assert session.result is result
        assert session.error is None
        assert not session.is_scanning

    def test_failed_scan_clears_result(self, sample_tree):
        session = ScanSession()
        session.scan("~", 1)
        with pytest.raises(RootNotFoundError):
            session.scan("missing", 1)
        assert session.result is None
        assert isinstance(session.error, RootNotFoundError)

    def test_new_scan_replaces_result(self, sample_tree):
        session = ScanSession()
        session.scan("~", 0)
        assert len(session.result) == 1
        session.scan("~", 1)
        assert len(session.result) == 2


class TestBackgroundScan:
    def test_on_done_called(self, sample_tree):
        session = ScanSession()
        done: list[ScanResult] = []
        session.start_scan("~", 1, on_done=done.append)
        assert session.wait(5)
        assert len(done) == 1
        assert session.result is done[0]

    def test_on_error_called(self, fake_home):
        session = ScanSession()
        errors: list[Exception] = []
        session.start_scan("missing", 1, on_error=errors.append)
        assert session.wait(5)
        assert isinstance(errors[0], RootNotFoundError)
        assert session.result is None

    def test_negative_depth_rejected_up_front(self):
        with pytest.raises(ValueError):
            ScanSession().start_scan("~", -1)

    def test_last_started_scan_wins(self):
        scanner = GatedScanner()
        session = ScanSession(scanner=scanner)
        done: list[Path] = []

        first = session.start_scan("/first", 1, on_done=lambda r: done.append(r.root))
        second = session.start_scan("/second", 1, on_done=lambda r: done.append(r.root))
        assert second > first
        assert session.is_scanning

        scanner.gate("/second").set()
        assert session.wait(5)
        assert session.result.root == Path("/second")
        assert not session.is_scanning

        scanner.gate("/first").set()
        assert scanner.finished["/first"].wait(5)
        # Let the stale worker attempt its publish.
        for thread in threading.enumerate():
            if thread.name == f"heft-scan-{first}":
                thread.join(5)

        assert session.result.root == Path("/second")
        assert done == [Path("/second")]

    def test_synchronous_scan_supersedes_background(self):
        scanner = GatedScanner()
        session = ScanSession(scanner=scanner)
        session.start_scan("/slow", 1)
        scanner.gate("/fast").set()
        session.scan("/fast", 1)

        scanner.gate("/slow").set()
        assert session.wait(5)
        assert session.result.root == Path("/fast")


class TestDelete:
    def test_delete_updates_result_and_total(self, sample_tree):
        session = ScanSession()
        session.scan("~", 1)
        target = sample_tree / "a.txt"

        outcome = session.delete({target})
        assert outcome.bytes_freed == 100
        assert session.freed_total == 100
        assert [e.name for e in session.result] == ["b.txt"]
        assert not target.exists()

    def test_freed_total_accumulates(self, sample_tree):
        session = ScanSession()
        session.scan("~", 1)
        session.delete([sample_tree / "a.txt"])
        session.delete([str(sample_tree / "docs" / "b.txt")])
        assert session.freed_total == 150
        assert len(session.result) == 0

    def test_failed_delete_keeps_entry(self, sample_tree):
        session = ScanSession()
        session.scan("~", 1)
        (sample_tree / "a.txt").unlink()

        outcome = session.delete({sample_tree / "a.txt"})
        assert outcome.failed_paths == ["a.txt"]
        assert session.freed_total == 0
        assert len(session.result) == 2

    def test_stale_selection_fails_gracefully(self, sample_tree):
        session = ScanSession()
        session.scan("~", 1)
        stale = sample_tree / "docs" / "b.txt"
        stale.unlink()
        session.scan("~", 1)

        outcome = session.delete({stale})
        assert outcome.failed_paths == ["b.txt"]
        assert outcome.failures[0].reason == "not in the current scan result"
        assert outcome.bytes_freed == 0

    def test_delete_without_scan_removes_nothing(self, tmp_path, make_file):
        target = make_file(tmp_path / "loose.bin", 40)
        session = ScanSession()
        outcome = session.delete({target})
        assert outcome.files_removed == 0
        assert outcome.failed_paths == ["loose.bin"]
        assert target.exists()
        assert session.result is None

    def test_path_outside_result_left_alone(self, sample_tree):
        hidden = sample_tree / ".cache" / "c.txt"
        session = ScanSession()
        session.scan("~", 1)
        outcome = session.delete({hidden, sample_tree / "a.txt"})
        assert outcome.failed_paths == ["c.txt"]
        assert outcome.bytes_freed == 100
        assert hidden.exists()

    def test_relative_path_not_resolved_against_cwd(self, sample_tree, tmp_path, make_file, monkeypatch):
        cwd = tmp_path / "cwd"
        victim = make_file(cwd / "a.txt", 5)
        monkeypatch.chdir(cwd)
        session = ScanSession()
        session.scan("~", 1)

        outcome = session.delete(["a.txt"])
        assert outcome.failed_paths == ["a.txt"]
        assert outcome.failures[0].reason == "not an absolute path"
        assert victim.exists()
        assert (sample_tree / "a.txt").exists()
        assert len(session.result) == 2

    def test_known_sizes(self, sample_tree):
        session = ScanSession()
        session.scan("~", 1)
        a = sample_tree / "a.txt"
        assert session.known_sizes({a, sample_tree / "nope"}) == {a: 100}

    @pytest.mark.usefixtures("isolate_storage")
    def test_records_to_tracker(self, sample_tree):
        tracker = Tracker()
        session = ScanSession(tracker=tracker)
        session.scan("~", 1)
        session.delete({sample_tree / "a.txt", sample_tree / "missing"})
        assert tracker.session_bytes_freed == 100
        assert tracker.session_files_removed == 1
