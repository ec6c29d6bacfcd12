"""Headless command-line interface for clipmap."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from . import __version__
from .doctor import render_report, run_doctor
from .logging_utils import setup_logging
from .paths import log_dir
from .runtime_config import (
    BACKEND_NAMES,
    DEFAULT_BACKEND,
    normalize_proxy_prefix,
    resolve_log_level,
)
from .services.clip_catalog import (
    CatalogError,
    ClipRecord,
    filter_by_category,
    format_clip_meta,
    has_location,
    latest_clips,
    load_catalog,
    search_clips,
    unique_categories,
)
from .services.url_canonicalizer import canonicalize
from .version import build_help_epilog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipmap-cli",
        description="Inspect clip catalogs and playback tooling.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=build_help_epilog(),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument(
        "--backend",
        choices=BACKEND_NAMES,
        default=DEFAULT_BACKEND,
        help="Playback backend to diagnose (fake or vlc).",
    )
    parser.add_argument(
        "--proxy-prefix",
        help="CORS proxy prefix for shared-storage links (empty disables).",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("doctor", help="Check playback and catalog dependencies.")
    canon = commands.add_parser(
        "canonicalize", help="Print the direct media URL for a shared link."
    )
    canon.add_argument("url")
    clips = commands.add_parser("clips", help="List clips from a catalog.")
    clips.add_argument("source", help="Catalog TSV file path or http(s) URL.")
    clips.add_argument("--category", default="", help="Only clips with CATEGORY.")
    clips.add_argument("--search", default="", help="Filter by text.")
    clips.add_argument(
        "--latest", type=int, help="Only the N most recent clips, newest first."
    )
    clips.add_argument(
        "--located", action="store_true", help="Only clips with map coordinates."
    )
    return parser


def render_clips(
    clips: list[ClipRecord], *, proxy_prefix: str, console: Console
) -> None:
    categories = unique_categories(clips)
    table = Table(
        title=f"{len(clips)} clips",
        caption=f"Categories: {', '.join(categories)}" if categories else None,
    )
    table.add_column("Title")
    table.add_column("When")
    table.add_column("Categories")
    table.add_column("Media URL", overflow="fold")
    for clip in clips:
        table.add_row(
            clip.title,
            format_clip_meta(clip),
            ", ".join(clip.categories),
            canonicalize(clip.raw_link, proxy_prefix=proxy_prefix),
        )
    console.print(table)


def _run_clips(args: argparse.Namespace, proxy_prefix: str, console: Console) -> int:
    try:
        clips = asyncio.run(load_catalog(args.source))
    except CatalogError as exc:
        print(f"Catalog unavailable: {exc}", file=sys.stderr)
        return 1
    clips = search_clips(filter_by_category(clips, args.category), args.search)
    if args.located:
        clips = [clip for clip in clips if has_location(clip)]
    if args.latest is not None:
        clips = latest_clips(clips, args.latest)
    render_clips(clips, proxy_prefix=proxy_prefix, console=console)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = logging.getLogger(__name__)
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
            console=args.verbose,
        )
        logger.info("Starting clipmap CLI", extra={"command": args.command})
        proxy_prefix = normalize_proxy_prefix(args.proxy_prefix)
        console = Console()
        if args.command == "doctor":
            report = run_doctor(args.backend)
            print(render_report(report))
            return report.exit_code
        if args.command == "canonicalize":
            print(canonicalize(args.url, proxy_prefix=proxy_prefix))
            return 0
        return _run_clips(args, proxy_prefix, console)
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Unhandled error: %s", exc)
        print("Unexpected error. Re-run with --verbose for details.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
