"""
main.py – Entry point for the tududi-import CLI.

Connects to an existing Tududi database, discovers markdown notes under a
root directory and imports them (with tags) in a single transaction.
Nothing is committed unless --no-commit is switched off.

Usage:
    tududi-import -d tududi.sqlite3 -r ~/notes                 # dry run
    tududi-import -d tududi.sqlite3 -r ~/notes --no-commit=false
    python -m tududi_import -d tududi.sqlite3 -r ~/notes -p 4 -t false
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from tududi_import.config import LOG_LEVELS, ImportSettings
from tududi_import.errors import ConfigurationError, ImporterError
from tududi_import.importer import run_import
from tududi_import.models import ImportSummary
from tududi_import.services import tududi_db
from tududi_import.services.discovery import discover_notes

console = Console()

_TRUE = {"1", "true", "t", "yes", "y", "on"}
_FALSE = {"0", "false", "f", "no", "n", "off"}


def _setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _bool_value(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {value!r}")


def _add_bool_flag(parser: argparse.ArgumentParser, short: str, long: str, dest: str, help: str) -> None:
    # Bare flag means true; "-n false" / "--no-commit=false" turns it off.
    parser.add_argument(
        short,
        long,
        dest=dest,
        nargs="?",
        const=True,
        default=None,
        type=_bool_value,
        metavar="BOOL",
        help=help,
    )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tududi-import",
        description="Import a file system tree of markdown notes into Tududi's db directly",
    )
    parser.add_argument("-d", "--db", dest="db_path", required=True, help="Path to Tududi SQLite DB (required)")
    parser.add_argument("-r", "--root", required=True, help="Root directory of markdown files (required)")
    parser.add_argument(
        "-u",
        "--user-id",
        type=int,
        default=None,
        help="User ID to assign to imported notes and tags (default: 1)",
    )
    parser.add_argument(
        "-p",
        "--project-id",
        type=int,
        default=None,
        help="Project ID to assign to imported notes (-1 or omitted means no project)",
    )
    _add_bool_flag(parser, "-n", "--no-commit", "dry_run", "Dry run, do not commit writes (default: true)")
    _add_bool_flag(
        parser,
        "-f",
        "--tag-from-folders",
        "tag_from_folders",
        "Create tags from folder hierarchy under root (default: true)",
    )
    _add_bool_flag(
        parser,
        "-t",
        "--tag-from-hashtags",
        "tag_from_hashtags",
        "Create tags from inline #tags (default: true)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging verbosity (default: INFO)",
    )
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> ImportSettings:
    """Build settings from CLI flags, falling back to env / .env / defaults."""
    overrides = {k: v for k, v in vars(args).items() if v is not None}
    try:
        return ImportSettings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc


def run(settings: ImportSettings) -> ImportSummary:
    """Connect, discover and import. Raises ImporterError on any fatal error."""
    log = logging.getLogger(__name__)

    conn = tududi_db.connect(settings.db_path)
    log.info("Connected to DB: %s", settings.db_path)
    try:
        notes = discover_notes(
            settings.root,
            tag_from_folders=settings.tag_from_folders,
            tag_from_hashtags=settings.tag_from_hashtags,
        )
        log.info("Discovered %d markdown files", len(notes))
        return run_import(conn, notes, settings)
    finally:
        conn.close()


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    _setup_logging(args.log_level or "INFO")

    log = logging.getLogger(__name__)

    try:
        settings = load_settings(args)
    except ConfigurationError as exc:
        log.error("%s", exc)
        sys.exit(1)
    logging.getLogger().setLevel(settings.log_level)

    console.rule("[bold blue]tududi-import[/bold blue]")
    console.print(f"  Database     : {settings.db_path}")
    console.print(f"  Root         : {settings.root}")
    console.print(f"  User ID      : {settings.user_id}")
    console.print(f"  Project ID   : {settings.project_id if settings.has_project else 'none'}")
    console.print(
        f"  Tags from    : folders={settings.tag_from_folders} "
        f"hashtags={settings.tag_from_hashtags}"
    )
    console.print(f"  Mode         : {'DRY-RUN' if settings.dry_run else 'COMMIT'}")
    console.rule()

    try:
        summary = run(settings)
    except ImporterError as exc:
        log.error("%s", exc)
        sys.exit(1)

    result = (
        f"{summary.notes_imported} notes, {summary.tags_created} new tags, "
        f"{summary.tags_reused} reused tags, {summary.links_written} links"
    )
    if summary.committed:
        console.print(f"[bold green]✓[/] Import complete: {result}")
    else:
        console.print(f"[yellow]DRY-RUN complete, transaction rolled back.[/yellow] Would import {result}")


if __name__ == "__main__":
    main()
