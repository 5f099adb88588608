#!/usr/bin/env python3
"""
title-sync
==========

Keep a note's file name, frontmatter ``title`` and first ``# heading`` in sync.

Usage:
    title-sync sync NOTE.md [--source filename|metadata|heading] [--dry-run]
    title-sync sync-folder DIR [--source ...] [--yes] [--dry-run]
    title-sync status NOTE.md
    title-sync init-config [PATH]

Settings are read from --config (default: ./title-sync.json), then
overridden by TITLE_SYNC_* environment variables (a .env file is honoured).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from .config import Settings
from .const import SETTINGS_FILENAME
from .errors import CollaboratorFailure, ConfigError, TitleSyncError
from .notify import Notifier
from .policy import is_synchronized
from .sync import TitleSynchronizer
from .types import SyncOutcome, TitleSource
from .vault import FileSystemVault, TitleIndex

console = Console()
logger = logging.getLogger("title_sync")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_DECLINED = 2


def load_settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(Settings.load(args.config))


def _source(args: argparse.Namespace) -> Optional[TitleSource]:
    return TitleSource.parse(args.source) if args.source else None


def _print_outcome(outcome: SyncOutcome) -> None:
    if outcome.status != "planned":
        return
    if outcome.renamed:
        console.print(f"would rename: {Path(outcome.path).name} -> {Path(outcome.new_path).name}", style="yellow")
    if outcome.diff_unified:
        console.print(outcome.diff_unified, markup=False, highlight=False)


def confirm_bulk(folder_name: str, count: int, source: str) -> bool:
    """Ask before a bulk run; the default answer is No."""
    console.print(
        Panel(
            f'Folder: "{folder_name}"\n'
            f"Files to be processed: {count} markdown files\n"
            f"Source: {source}\n\n"
            "All markdown files in the folder and its subfolders will be processed.\n"
            "There is no way to automatically revert these changes. "
            "Back up your files before proceeding.",
            title="Confirm bulk title update",
            border_style="yellow",
        )
    )
    return Confirm.ask("Proceed with bulk update?", default=False, console=console)


async def cmd_sync(args: argparse.Namespace, settings: Settings) -> int:
    syncer = TitleSynchronizer(FileSystemVault(), settings, Notifier(settings, mobile=args.mobile))
    try:
        outcome = await syncer.sync_document(Path(args.path), _source(args), dry_run=args.dry_run)
    except TitleSyncError:
        return EXIT_ERROR
    _print_outcome(outcome)
    return EXIT_OK


async def cmd_sync_folder(args: argparse.Namespace, settings: Settings) -> int:
    directory = Path(args.directory)
    index = TitleIndex()
    syncer = TitleSynchronizer(FileSystemVault(index), settings, Notifier(settings, mobile=args.mobile))
    source = _source(args) or settings.default_title_source
    try:
        paths = await syncer.list_documents(directory)
    except CollaboratorFailure as e:
        console.print(str(e), style="red", markup=False)
        return EXIT_ERROR

    if not args.yes and not confirm_bulk(directory.name or str(directory), len(paths), source.value):
        console.print("Bulk update cancelled", style="yellow")
        return EXIT_DECLINED

    await index.build(directory)
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        # Ctrl-C stops between notes instead of in the middle of one
        loop.add_signal_handler(signal.SIGINT, cancel.set)
    except (NotImplementedError, RuntimeError):
        pass
    try:
        summary = await syncer.sync_folder(directory, source, cancel=cancel, dry_run=args.dry_run)
    except CollaboratorFailure as e:
        console.print(str(e), style="red", markup=False)
        return EXIT_ERROR
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass

    if summary.failures:
        table = Table(title="Failed notes")
        table.add_column("Note")
        table.add_column("Error", style="red")
        for path, message in summary.failures:
            table.add_row(path, message)
        console.print(table)
    if summary.errors:
        return EXIT_ERROR
    return EXIT_DECLINED if summary.cancelled else EXIT_OK


async def cmd_status(args: argparse.Namespace, settings: Settings) -> int:
    syncer = TitleSynchronizer(FileSystemVault(), settings, Notifier(settings, mobile=args.mobile))
    try:
        titles = await syncer.titles(Path(args.path))
    except CollaboratorFailure as e:
        console.print(str(e), style="red", markup=False)
        return EXIT_ERROR

    mode = settings.sync_mode
    table = Table(title=Path(args.path).name)
    table.add_column("Representation")
    table.add_column("Value")
    table.add_column("In sync mode")
    rows = [
        ("filename", titles.filename, mode.includes_filename),
        ("frontmatter", titles.frontmatter_title, mode.includes_metadata),
        ("heading", titles.heading_title, mode.includes_heading),
    ]
    for name, value, included in rows:
        table.add_row(name, value if value is not None else "[dim]missing[/dim]", "yes" if included else "no")
    console.print(table)
    if is_synchronized(titles, mode):
        console.print("[green]All titles are already synchronized")
    else:
        console.print(f"[yellow]Titles differ under sync mode {mode.value}")
    return EXIT_OK


async def cmd_init_config(args: argparse.Namespace, settings: Settings) -> int:
    target = Path(args.target or args.config)
    if target.exists() and not args.force:
        console.print(f"[red]{target} exists (use --force to overwrite)")
        return EXIT_ERROR
    Settings().save(target)
    console.print(f"[green]Wrote default settings to {target}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="title-sync",
        description="Synchronize note titles across file name, frontmatter and first heading",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", default=SETTINGS_FILENAME, help="Settings JSON document")
    parser.add_argument("--mobile", action="store_true", help="Use the mobile notification preference")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sources = [s.value for s in TitleSource]

    p_sync = sub.add_parser("sync", help="Sync the titles of one note")
    p_sync.add_argument("path")
    p_sync.add_argument("--source", choices=sources, help="Authoritative title (default from settings)")
    p_sync.add_argument("--dry-run", action="store_true", help="Show the diff without writing")
    p_sync.set_defaults(func=cmd_sync)

    p_folder = sub.add_parser("sync-folder", help="Sync every note under a folder, recursively")
    p_folder.add_argument("directory")
    p_folder.add_argument("--source", choices=sources, help="Authoritative title (default from settings)")
    p_folder.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    p_folder.add_argument("--dry-run", action="store_true", help="Report without writing")
    p_folder.set_defaults(func=cmd_sync_folder)

    p_status = sub.add_parser("status", help="Show the three titles of a note")
    p_status.add_argument("path")
    p_status.set_defaults(func=cmd_status)

    p_init = sub.add_parser("init-config", help="Write a settings document with defaults")
    p_init.add_argument("target", nargs="?")
    p_init.add_argument("--force", action="store_true")
    p_init.set_defaults(func=cmd_init_config)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_settings(args)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e}")
        return EXIT_ERROR
    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        console.print("Interrupted", style="yellow")
        return EXIT_DECLINED


if __name__ == "__main__":
    sys.exit(main())
