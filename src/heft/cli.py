"""CLI interface for Heft."""

from __future__ import annotations

import json
import logging
import sys

import click

from heft.core.scanner import DirectoryScanner, ScanError
from heft.core.session import ScanSession
from heft.core.tracker import Tracker
from heft.models.scan_result import ScanResult
from heft.serialize import outcome_to_dict, result_to_dict
from heft.settings import Settings
from heft.utils import bytes_to_human, format_elapsed, format_relative_time, shorten_path

DEPTH_CHOICES = (1, 2, 3, 5, 10)


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _resolve_depth(settings: Settings, depth: int | None) -> int:
    return depth if depth is not None else settings.default_depth()


def _print_entries(result: ScanResult) -> None:
    width = len(str(len(result)))
    for i, entry in enumerate(result.entries, 1):
        size_str = bytes_to_human(entry.size_bytes)
        click.echo(
            f"  [{i:>{width}}] {click.style(f'{size_str:>10s}', fg='green')}  "
            f"{shorten_path(entry.path)}"
        )


def parse_selection(raw: str, count: int) -> set[int]:
    """Parse ``1,3,5-7`` or ``all`` into zero-based indices below *count*.

    Numbers outside 1..count and malformed parts are ignored.
    """
    raw = raw.strip().lower()
    if raw in ("all", "*"):
        return set(range(count))

    selected: set[int] = set()
    for part in raw.split(","):
        part = part.strip()
        if "-" in part:
            lo, _, hi = part.partition("-")
            if lo.strip().isdigit() and hi.strip().isdigit():
                for n in range(int(lo), int(hi) + 1):
                    if 1 <= n <= count:
                        selected.add(n - 1)
        elif part.isdigit():
            n = int(part)
            if 1 <= n <= count:
                selected.add(n - 1)
    return selected


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """Heft: find the largest files under a directory and delete them."""
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", default="")
@click.option("--depth", "-d", type=click.IntRange(min=0), default=None,
              help=f"Directory levels to descend (typical: {', '.join(map(str, DEPTH_CHOICES))})")
@click.option("--limit", "-n", type=click.IntRange(min=0), default=None, help="Maximum number of files to list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(path: str, depth: int | None, limit: int | None, as_json: bool) -> None:
    """List the largest files under PATH (default: home directory).

    PATH may be absolute, start with ~, or be relative to the home directory.
    """
    settings = Settings.instance()
    scanner = DirectoryScanner.from_settings(settings, limit)
    max_depth = _resolve_depth(settings, depth)

    try:
        result = scanner.scan(path, max_depth)
    except ScanError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result_to_dict(result), indent=2))
        return

    click.echo(
        f"\n{click.style('Scanned', bold=True)} {result.root} "
        f"(depth {result.max_depth}, {format_elapsed(result.elapsed)})\n"
    )
    if not result.entries:
        click.echo("No files found.")
        return

    _print_entries(result)

    shown = f"{len(result):,} of {result.files_seen:,} files" if result.truncated else f"{len(result):,} files"
    click.echo(f"\n{shown}, {click.style(bytes_to_human(result.total_bytes), fg='green', bold=True)} total\n")


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", default="")
@click.option("--depth", "-d", type=click.IntRange(min=0), default=None, help="Directory levels to descend")
@click.option("--limit", "-n", type=click.IntRange(min=0), default=None, help="Maximum number of files to list")
@click.option("--select", "-s", "selection", default=None, help="Files to delete, e.g. '1,3,5-7' or 'all'")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be deleted without doing it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def clean(
    path: str,
    depth: int | None,
    limit: int | None,
    selection: str | None,
    yes: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Scan PATH, pick files and delete them permanently."""
    settings = Settings.instance()
    tracker = Tracker()
    session = ScanSession(scanner=DirectoryScanner.from_settings(settings, limit), tracker=tracker)

    if as_json and selection is None:
        raise click.UsageError("--json requires --select")

    try:
        result = session.scan(path, _resolve_depth(settings, depth))
    except ScanError as exc:
        if as_json:
            click.echo(json.dumps({"status": "error", "error": str(exc)}))
        else:
            click.echo(str(exc), err=True)
        sys.exit(1)

    if not result.entries:
        if as_json:
            click.echo(json.dumps({"status": "nothing_found"}))
        else:
            click.echo("No files found.")
        return

    if not as_json:
        click.echo()
        _print_entries(result)
        click.echo()

    if selection is None:
        selection = click.prompt("Select files to delete (e.g. 1,3,5-7 or 'all')", default="", show_default=False)

    indices = parse_selection(selection, len(result))
    if not indices:
        if as_json:
            click.echo(json.dumps({"status": "nothing_selected"}))
        else:
            click.echo("Nothing selected.")
        return

    chosen = [result.entries[i] for i in sorted(indices)]
    chosen_bytes = sum(e.size_bytes for e in chosen)

    if dry_run:
        if as_json:
            click.echo(json.dumps({
                "status": "dry_run",
                "would_free_bytes": chosen_bytes,
                "paths": [str(e.path) for e in chosen],
            }, indent=2))
        else:
            for entry in chosen:
                click.echo(f"  would delete {shorten_path(entry.path)}")
            click.echo(f"\n(dry run, {bytes_to_human(chosen_bytes)} would be freed; no files were deleted)")
        return

    if not yes and not as_json and settings.confirm_before_clean():
        count = len(chosen)
        click.confirm(
            f"Permanently delete {count} file{'s' if count != 1 else ''} "
            f"({bytes_to_human(chosen_bytes)})? This cannot be undone.",
            abort=True,
        )

    outcome = session.delete(e.path for e in chosen)
    tracker.save_session()

    if as_json:
        click.echo(json.dumps({"status": "deleted", **outcome_to_dict(outcome)}, indent=2))
        return

    click.echo(
        f"\nDeleted {outcome.files_removed} file{'s' if outcome.files_removed != 1 else ''}, "
        f"freed {click.style(bytes_to_human(outcome.bytes_freed), fg='green', bold=True)}"
    )
    if not outcome.ok:
        click.echo(click.style(outcome.summary_message(), fg="yellow"), err=True)
    click.echo()


# ── stats ────────────────────────────────────────────────────────────────

@main.command()
@click.option("--period", "-p", default="all", type=click.Choice(["today", "week", "month", "all"]))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(period: str, as_json: bool) -> None:
    """Show space freed statistics."""
    tracker = Tracker()
    data = tracker.get_stats(period)

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\n{click.style('Statistics', bold=True)} ({period})\n")
    click.echo(f"  Bytes freed:    {click.style(bytes_to_human(data['bytes_freed']), fg='green', bold=True)}")
    click.echo(f"  Files removed:  {data['files_removed']:,}")
    click.echo(f"  Failures:       {data['failures']:,}")
    click.echo(f"  Sessions:       {data['session_count']}")
    click.echo(f"  Lifetime total: {click.style(bytes_to_human(data['lifetime_bytes_freed']), fg='cyan', bold=True)}")

    last = tracker.get_last_clean_time()
    if last:
        click.echo(f"  Last clean:     {format_relative_time(last)}")

    if data["per_root"]:
        click.echo("\n  Per-directory breakdown:")
        for root, rstats in sorted(data["per_root"].items(), key=lambda x: x[1]["bytes_freed"], reverse=True):
            click.echo(f"    {root:40s} {bytes_to_human(rstats['bytes_freed']):>10s}  ({rstats['files_removed']:,} files)")
    click.echo()


# ── service ──────────────────────────────────────────────────────────────

@main.group()
def service() -> None:
    """D-Bus service management."""


@service.command("start")
def service_start() -> None:
    """Start the D-Bus service in foreground."""
    from heft.dbus_service import start_service

    click.echo("Starting Heft D-Bus service...")
    start_service()
