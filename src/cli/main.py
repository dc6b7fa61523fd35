"""Listenprint CLI entry points.

This module exposes import, fetch, fingerprint, and cache inspection
commands. It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from core.config import ListenprintConfig
from core.constants import SUPPORTED_IMPORT_MODES
from core.errors import ListenprintError
from core.types import GenreCacheStats, ImportOutcome, IngestProgress
from store.listen_sdk import ListenprintClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="listenprint", description="Listening-history import and fingerprint CLI"
    )
    parser.add_argument("--data-root", help="Override LISTENPRINT_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_import_command(subparsers)
    _add_fetch_command(subparsers)
    subparsers.add_parser("fingerprint", help="Print the five-axis listening fingerprint")
    subparsers.add_parser("cache-stats", help="Print genre cache statistics")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Listenprint CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root)
        if args.command == "import":
            return _run_import_command(client, args)
        if args.command == "fetch":
            return _run_fetch_command(client, args)
        if args.command == "fingerprint":
            return _run_fingerprint_command(client)
        if args.command == "cache-stats":
            return _run_cache_stats_command(client)
    except ListenprintError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _add_import_command(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("import", help="Import listening-history export files")
    parser.add_argument("files", nargs="+", help="Export files (.json, .jsonl, .ndjson)")
    parser.add_argument(
        "--mode",
        choices=SUPPORTED_IMPORT_MODES,
        default="auto",
        help="Force a source format instead of detecting it",
    )
    parser.add_argument("--quiet", action="store_true", help="Do not print progress lines")


def _add_fetch_command(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("fetch", help="Import a ListenBrainz account via the API")
    parser.add_argument("user", help="ListenBrainz user name")
    parser.add_argument("--token", help="ListenBrainz user token")
    parser.add_argument("--max-listens", type=int, help="Stop after this many listens")


def _build_client(data_root: str | None) -> ListenprintClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = ListenprintConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return ListenprintClient(config)


def _run_import_command(client: ListenprintClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    on_progress = None if args.quiet else _print_progress
    outcome = client.import_files(args.files, mode=args.mode, on_progress=on_progress)
    _print_outcome(outcome)
    return 0


def _run_fetch_command(client: ListenprintClient, args: argparse.Namespace) -> int:
    """Handle fetch command."""
    outcome = client.import_from_api(args.user, args.token, max_listens=args.max_listens)
    _print_outcome(outcome)
    return 0


def _run_fingerprint_command(client: ListenprintClient) -> int:
    """Handle fingerprint command."""
    print(json.dumps(client.fingerprint().as_dict(), sort_keys=True))
    return 0


def _run_cache_stats_command(client: ListenprintClient) -> int:
    """Handle cache-stats command."""
    print(format_cache_stats(client.genre_cache_stats()))
    return 0


def format_cache_stats(stats: GenreCacheStats) -> str:
    """Render genre cache statistics as a text table.

    Args:
        stats: Cache statistics.

    Returns:
        Multi-line report.
    """
    lines = [f"Total cached artists: {stats.total}"]
    for source, count in sorted(stats.by_source.items(), key=lambda item: -item[1]):
        share = count / stats.total * 100 if stats.total else 0.0
        lines.append(f"  {source:<20} {count:>6} ({share:.1f}%)")
    if stats.oldest_cache is not None and stats.newest_cache is not None:
        lines.append(f"Oldest cache: {_format_millis(stats.oldest_cache)}")
        lines.append(f"Newest cache: {_format_millis(stats.newest_cache)}")
    return "\n".join(lines)


def _format_millis(value: int) -> str:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date().isoformat()


def _print_progress(progress: IngestProgress) -> None:
    if not progress.status:
        return
    suffix = f" [{progress.current_unit}]" if progress.current_unit else ""
    print(f"{progress.percentage:5.1f}% {progress.status}{suffix}", file=sys.stderr)


def _print_outcome(outcome: ImportOutcome) -> None:
    summary = {
        "imported": outcome.imported_count,
        "duplicates_removed": outcome.merge_info.duplicates_removed,
        "total": outcome.count,
        "skipped_units": list(outcome.skipped_units),
        "earliest": outcome.validation.earliest.isoformat(),
        "latest": outcome.validation.latest.isoformat(),
    }
    print(json.dumps(summary, sort_keys=True))
