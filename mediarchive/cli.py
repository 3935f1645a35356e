"""CLI with subcommands: archive, scan, configs, loaders, metadata, parse."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler
from rich.table import Table

from .core.config import PRESETS, ArchiveConfig, load_run_config
from .core.metadata import FileMetadata
from .core.naming import SocialFile
from .loaders.registry import default_registry
from .logging.rich_logger import QuietArchiveReporter, RichArchiveReporter
from .services.archiver import FolderArchiver
from .services.scanner import CAMERAS_SOURCE, DirectoryScanner, expand_sources

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="mediarchive",
        description="Archive media folders into a destination using templated, policy-driven rules.",
    )

    # Global options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ============ ARCHIVE / SCAN commands ============
    for name, help_text in (
        ("archive", "Archive source folders into the destination"),
        ("scan", "Report what archive would do, without touching any file"),
    ):
        command_parser = subparsers.add_parser(name, help=help_text)
        command_parser.add_argument(
            "-s", "--source",
            dest="sources",
            action="append",
            required=True,
            help=f"Source folder (repeatable), or {CAMERAS_SOURCE} for mounted camera cards",
        )
        command_parser.add_argument(
            "-d", "--destination",
            type=Path,
            required=True,
            help="Destination root folder",
        )
        command_parser.add_argument(
            "-c", "--config",
            default="Default",
            help=f"Config file path or preset name ({', '.join(PRESETS)}); default: Default",
        )
        if name == "archive":
            command_parser.add_argument(
                "--dry-run",
                action="store_true",
                help="Show what would be done without changing any file",
            )

    # ============ CONFIGS command ============
    configs_parser = subparsers.add_parser("configs", help="List presets or show one config")
    configs_parser.add_argument(
        "name",
        nargs="?",
        default=None,
        help="Preset name or config file path",
    )

    # ============ LOADERS command ============
    subparsers.add_parser("loaders", help="List metadata loader names")

    # ============ METADATA command ============
    metadata_parser = subparsers.add_parser("metadata", help="Read one file's metadata with the given loaders")
    metadata_parser.add_argument(
        "-l", "--loaders",
        required=True,
        help="Comma separated loader names (see the loaders command)",
    )
    metadata_parser.add_argument(
        "-f", "--file",
        type=Path,
        required=True,
        help="File to read metadata from",
    )

    # ============ PARSE command ============
    parse_parser = subparsers.add_parser("parse", help="Decode social export file names")
    parse_parser.add_argument("names", nargs="+", help="File names or paths")

    return parser


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route library logging through Rich."""
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, rich_tracebacks=verbose)],
        force=True,
    )


def cmd_archive(args: argparse.Namespace, reporter) -> int:
    """Handle the archive and scan commands."""
    config = load_run_config(args.config, args.destination)
    if args.command == "scan" or getattr(args, "dry_run", False):
        config = config.merge(ArchiveConfig(dry_run=True))

    sources = expand_sources(args.sources)
    if not sources:
        reporter.warning("No source folders found.")
        return 0

    reporter.print_header(f"mediarchive {args.command}")
    reporter.print_config({
        "Sources": ", ".join(str(s) for s in sources),
        "Destination": str(args.destination),
        "Config": args.config,
        **config.summary(),
    })

    total = None
    if config.report_progress:
        scanner = DirectoryScanner()
        total = sum(scanner.count_files(s, bool(config.recursive)) for s in sources if s.is_dir())

    with FolderArchiver(config) as archiver:
        results = archiver.archive_all(sources, args.destination)
        reporter.start("Archiving", total=total)
        try:
            for result in results:
                reporter.report(result)
        finally:
            reporter.stop()
        stats = archiver.stats

    reporter.print_stats(stats, title="Scan Complete" if config.dry_run else "Archive Complete")
    return 1 if stats.failed else 0


def cmd_configs(args: argparse.Namespace, reporter) -> int:
    """Handle the configs command."""
    if args.name:
        reporter.print_config(ArchiveConfig.load(args.name).summary())
        return 0

    table = Table(title="Presets", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Loaders", style="white")
    table.add_column("Destination", style="white")
    for name, preset in PRESETS.items():
        destination = "/".join(filter(None, (preset.subfolder_template, preset.file_name_template)))
        table.add_row(name, preset.metadata_loaders or "", destination)
    reporter.console.print(table)
    return 0


def cmd_loaders(args: argparse.Namespace, reporter) -> int:
    """Handle the loaders command."""
    for name in default_registry().names():
        reporter.console.print(name)
    return 0


def cmd_metadata(args: argparse.Namespace, reporter) -> int:
    """Handle the metadata command."""
    if not args.file.is_file():
        reporter.error(f"File '{args.file}' does not exist.")
        return 1

    names = ArchiveConfig(metadata_loaders=args.loaders).loader_names
    if not names:
        reporter.error("No metadata loaders specified.")
        return 1

    registry = default_registry()
    try:
        metadata = FileMetadata()
        for loader in registry.resolve(names):
            if not loader.extract_path(args.file, metadata):
                logger.debug("%s rejected %s", loader.name, args.file)
        reporter.print_metadata(metadata)
    finally:
        registry.close_all()
    return 0


def cmd_parse(args: argparse.Namespace, reporter) -> int:
    """Handle the parse command."""
    table = Table(show_header=True, header_style="bold")
    for column in ("File", "Username", "Timestamp", "Content Id", "User Id", "Valid"):
        table.add_column(column)
    for name in args.names:
        parsed = SocialFile.parse(name)
        table.add_row(
            name,
            parsed.username or "",
            str(parsed.timestamp),
            str(parsed.content_id),
            str(parsed.user_id),
            "[green]yes[/green]" if parsed.is_valid else "[red]no[/red]",
        )
    reporter.console.print(table)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, quiet=args.quiet)

    # Create reporter
    if args.quiet:
        reporter = QuietArchiveReporter()
    else:
        reporter = RichArchiveReporter(verbose=args.verbose)

    # No command specified - show help
    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to command handler
    try:
        if args.command in ("archive", "scan"):
            return cmd_archive(args, reporter)
        elif args.command == "configs":
            return cmd_configs(args, reporter)
        elif args.command == "loaders":
            return cmd_loaders(args, reporter)
        elif args.command == "metadata":
            return cmd_metadata(args, reporter)
        elif args.command == "parse":
            return cmd_parse(args, reporter)
        else:
            reporter.error(f"Unknown command: {args.command}")
            return 1

    except KeyboardInterrupt:
        # Clean exit on Ctrl+C - no stack trace
        return 130
    except Exception as e:
        reporter.error(f"Error: {e}")
        if args.verbose:
            reporter.console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
