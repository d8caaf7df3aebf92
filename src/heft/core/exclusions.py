"""Directories the scanner never descends into."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


@dataclass(frozen=True)
class SkipRule:
    """Excludes any directory whose path contains *fragment*.

    Matching is case-insensitive and segment-aware: ``/dev`` excludes
    ``/dev`` and ``/home/u/dev/x`` but not ``/home/u/devel``.
    """

    fragment: str

    def __post_init__(self) -> None:
        normalized = "/" + self.fragment.strip().strip("/").lower()
        object.__setattr__(self, "fragment", normalized)

    def matches(self, path: Path | str) -> bool:
        haystack = str(path).lower().rstrip("/") + "/"
        return f"{self.fragment}/" in haystack


DEFAULT_RULES: tuple[SkipRule, ...] = (
    SkipRule("/library"),
    SkipRule("/system"),
    SkipRule("/private"),
    SkipRule("/volumes"),
    SkipRule("/network"),
    SkipRule("/dev"),
    SkipRule("/bin"),
    SkipRule("/sbin"),
    SkipRule("/usr/bin"),
    SkipRule("/usr/sbin"),
    SkipRule("/usr/libexec"),
    SkipRule("/Applications/Xcode.app"),
)


def is_hidden(path: Path) -> bool:
    """Check if a path's final component starts with a dot."""
    return path.name.startswith(".")


def should_skip_dir(path: Path, rules: Iterable[SkipRule] = DEFAULT_RULES) -> bool:
    """Return True if the scanner must not descend into *path*."""
    if is_hidden(path):
        return True
    return any(rule.matches(path) for rule in rules)


def rules_from_strings(fragments: Iterable[str], base: Iterable[SkipRule] = DEFAULT_RULES) -> tuple[SkipRule, ...]:
    """Extend *base* with rules built from user-supplied fragments.

    Blank fragments and duplicates are ignored.
    """
    rules = list(base)
    for raw in fragments:
        if not isinstance(raw, str) or not raw.strip().strip("/"):
            continue
        rule = SkipRule(raw)
        if rule not in rules:
            rules.append(rule)
    return tuple(rules)
