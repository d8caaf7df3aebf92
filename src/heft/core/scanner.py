"""Depth-limited directory walk producing a size-ordered ScanResult."""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from heft.core.exclusions import DEFAULT_RULES, SkipRule, rules_from_strings, should_skip_dir
from heft.models.scan_result import DEFAULT_RESULT_LIMIT, FileEntry, ScanResult

if TYPE_CHECKING:
    from heft.settings import Settings

log = logging.getLogger(__name__)

# Files and subdirectories found by listing one directory.
Listing = tuple[list[FileEntry], list[Path]]


class ScanError(Exception):
    """Raised when a scan cannot produce a result."""


class RootNotFoundError(ScanError):
    """Raised when the scan root is not an existing directory."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f"The directory {path} could not be found. Please check the path and try again."
        )


def resolve_root(raw: str | Path) -> Path:
    """Turn a user-supplied root into an absolute path.

    Accepted shapes:
        ``/abs/path``   used as-is
        ``~`` / ``~/x`` relative to the home directory
        ``x/y``         also relative to the home directory

    An empty string means the home directory itself.
    """
    text = str(raw).strip()
    home = Path.home()
    if not text:
        return home
    if text.startswith("/"):
        return Path(text)
    if text.startswith("~"):
        rest = text[2:] if text.startswith("~/") else text[1:]
        return home / rest
    return home / text


def _list_dir(directory: Path, rules: tuple[SkipRule, ...]) -> Listing:
    """List one directory, skipping excluded subdirectories.

    Symlinks are neither followed nor reported. Entries that cannot be
    stat'ed are dropped; an unreadable directory yields an empty listing.
    """
    files: list[FileEntry] = []
    subdirs: list[Path] = []
    try:
        with os.scandir(directory) as it:
            items = sorted(it, key=lambda e: e.name)
    except OSError as e:
        log.debug("Cannot read directory %s: %s", directory, e)
        return files, subdirs

    for item in items:
        path = Path(item.path)
        try:
            if item.is_dir(follow_symlinks=False):
                if should_skip_dir(path, rules):
                    log.debug("Skipping excluded directory: %s", path)
                else:
                    subdirs.append(path)
            elif item.is_file(follow_symlinks=False):
                files.append(FileEntry(path=path, size_bytes=item.stat(follow_symlinks=False).st_size))
        except OSError:
            log.debug("Cannot access: %s", path)
    return files, subdirs


class DirectoryScanner:
    """Walks a directory tree to a bounded depth.

    Depth is counted from the root: the root's own files are at depth 0,
    files in its direct subdirectories at depth 1, and so on. A walk with
    ``max_depth=d`` reports files from depths 0..d inclusive.

    All directories of one depth level are listed concurrently on a small
    thread pool. Listings are merged by concatenation and sorted once at
    the end, so the worker count never affects the result.
    """

    def __init__(
        self,
        rules: Iterable[SkipRule] = DEFAULT_RULES,
        limit: int = DEFAULT_RESULT_LIMIT,
        max_workers: int | None = None,
    ) -> None:
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        self.rules = tuple(rules)
        self.limit = limit
        cpus = os.cpu_count() or 1
        self.max_workers = max_workers if max_workers is not None else min(32, cpus + 4)
        self._parallel = cpus > 1 and self.max_workers > 1

    @classmethod
    def from_settings(cls, settings: Settings, limit: int | None = None) -> DirectoryScanner:
        """Build a scanner using the configured limit and extra exclusions."""
        rules = rules_from_strings(settings.extra_excludes())
        return cls(rules=rules, limit=limit if limit is not None else settings.result_limit())

    def scan(self, root_input: str | Path, max_depth: int) -> ScanResult:
        """Scan *root_input* and return the largest files found.

        Raises:
            ValueError: If *max_depth* is negative.
            RootNotFoundError: If the resolved root is not a directory.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")

        root = resolve_root(root_input)
        if not root.is_dir():
            raise RootNotFoundError(root)

        started = time.monotonic()
        found = self._walk(root, max_depth)
        result = ScanResult.build(
            root,
            max_depth,
            found,
            limit=self.limit,
            elapsed=time.monotonic() - started,
        )
        log.info(
            "Scanned %s (depth %d): %d files, kept %d in %.2fs",
            root,
            max_depth,
            result.files_seen,
            len(result),
            result.elapsed,
        )
        return result

    def _walk(self, root: Path, max_depth: int) -> list[FileEntry]:
        found: list[FileEntry] = []
        level = [root]
        depth = 0

        if self._parallel:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                while level:
                    listings = list(executor.map(self._list, level))
                    level = self._merge(listings, found, depth < max_depth)
                    depth += 1
        else:
            while level:
                listings = [self._list(d) for d in level]
                level = self._merge(listings, found, depth < max_depth)
                depth += 1

        return found

    def _list(self, directory: Path) -> Listing:
        return _list_dir(directory, self.rules)

    @staticmethod
    def _merge(listings: list[Listing], found: list[FileEntry], descend: bool) -> list[Path]:
        """Collect files into *found* and return the next level to list."""
        next_level: list[Path] = []
        for files, subdirs in listings:
            found.extend(files)
            if descend:
                next_level.extend(subdirs)
        return next_level


def scan(root_input: str | Path, max_depth: int, **kwargs) -> ScanResult:
    """Scan with a one-off :class:`DirectoryScanner`."""
    return DirectoryScanner(**kwargs).scan(root_input, max_depth)
