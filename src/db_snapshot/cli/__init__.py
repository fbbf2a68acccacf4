"""CLI module for database snapshots.

Provides commands for dumping a database to a SQL artifact, listing the
tables a dump would cover, and listing configured profiles.

Usage:
    DB_PROFILE=prod db-snapshot dump
    db-snapshot dump --profile prod --gzip --notify
    db-snapshot dump --database-url postgresql://localhost/app --output-dir /tmp/dumps
    db-snapshot tables --profile prod
    db-snapshot profiles

Commands:
    dump      - Dump schema and data to a timestamped SQL file
    tables    - List tables and columns that would be dumped
    profiles  - List available profiles
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from db_snapshot.config.loader import load_config
from db_snapshot.config.models import SnapshotConfig
from db_snapshot.dump.models import DumpReport
from db_snapshot.dump.runner import run_dump
from db_snapshot.errors import DumpError, NotificationError
from db_snapshot.factory import (
    ProfileNotFoundError,
    create_introspector,
    create_notifier,
    create_source,
    get_active_profile_name,
    get_profile,
    resolve_url,
)

console = Console()


# ============================================================================
# Shared helpers
# ============================================================================


def _configure_logging(verbosity: int) -> None:
    """Route library logging through rich.

    Args:
        verbosity: Number of ``-v`` flags (0 = warnings, 1 = info, 2+ = debug).
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _load(args: argparse.Namespace) -> SnapshotConfig:
    """Load db.toml, tolerating a missing file when ``--database-url`` is given."""
    config_path = Path(args.config) if getattr(args, "config", None) else None
    try:
        return load_config(config_path)
    except FileNotFoundError:
        if getattr(args, "database_url", None):
            return SnapshotConfig()
        raise


def _resolve_database_url(args: argparse.Namespace, config: SnapshotConfig) -> tuple[str, str]:
    """Pick the connection URL for this invocation.

    Returns:
        Tuple of (label, url). The label is the profile name, or ``"url"``
        for a direct ``--database-url``.

    Raises:
        ProfileNotFoundError: If no profile is selected or it is unknown
    """
    if getattr(args, "database_url", None):
        return "url", args.database_url

    env_prefix = getattr(args, "env_prefix", "")
    profile_name = get_active_profile_name(getattr(args, "profile", None), env_prefix)
    return profile_name, resolve_url(get_profile(config, profile_name))


def _print_report(report: DumpReport) -> None:
    table = Table(title="Database Backup", show_header=True, header_style="bold")
    table.add_column("Field", style="dim")
    table.add_column("Value")

    table.add_row("File", report.path)
    table.add_row("Size", f"{report.size_mb} MB ({report.size_bytes} bytes)")
    table.add_row("Tables", str(report.tables_count))
    table.add_row("Rows", str(report.rows_written))
    table.add_row("Duration", f"{report.duration_seconds:.2f} s")
    table.add_row("Warnings", str(report.warning_count))
    console.print(table)

    if report.skipped_tables:
        console.print(
            f"  Skipped tables: [yellow]{escape(', '.join(report.skipped_tables))}[/yellow]"
        )
    for warning in report.warnings:
        where = f"[bold]{escape(warning.table)}[/bold]: " if warning.table else ""
        console.print(f"  [yellow]![/yellow] {where}{escape(warning.message)}")


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_dump(args: argparse.Namespace) -> int:
    """Async implementation for dump command.

    Args:
        args: Parsed arguments with profile, database_url, output_dir, gzip,
            no_snapshot, on_encoding_error, notify and env_prefix.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load(args)
        label, database_url = _resolve_database_url(args, config)
    except (FileNotFoundError, ValueError, ProfileNotFoundError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    overrides: dict[str, object] = {}
    if args.output_dir:
        overrides["destination"] = args.output_dir
    if args.gzip:
        overrides["compress"] = True
    if args.no_snapshot:
        overrides["consistent_snapshot"] = False
    if args.on_encoding_error:
        overrides["on_encoding_error"] = args.on_encoding_error
    if overrides:
        config.dump = config.dump.model_copy(update=overrides)

    notifier = None
    if args.notify:
        if config.notify.smtp is None:
            console.print("[red]Error: --notify requires a \\[notify.smtp] section in db.toml[/red]")
            return 1
        try:
            notifier = create_notifier(config.notify.smtp)
        except NotificationError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            return 1

    console.print(f"Dumping database: [bold cyan]{label}[/bold cyan]", style="dim")

    result = await run_dump(
        config.dump,
        create_introspector(database_url, config),
        create_source(database_url, config),
        notifier=notifier,
    )

    if not result.success:
        console.print()
        console.print(f"[bold red]x[/bold red] {escape(result.error or '')}")
        return 1

    console.print()
    console.print("[bold green]v[/bold green] Backup completed")
    _print_report(result.report)

    if result.notified:
        console.print("[dim]Notification sent.[/dim]")
    elif result.notification_error:
        console.print(
            f"[yellow]Notification failed:[/yellow] {escape(result.notification_error)}"
        )
    return 0


async def _async_tables(args: argparse.Namespace) -> int:
    """Async implementation for tables command.

    Args:
        args: Parsed arguments with profile, database_url and env_prefix.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load(args)
        label, database_url = _resolve_database_url(args, config)
    except (FileNotFoundError, ValueError, ProfileNotFoundError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    table = Table(
        title=f"Tables ({label}, schema {config.dump.schema_name})",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Table", style="cyan")
    table.add_column("Columns", justify="right")
    table.add_column("Definition", style="dim")

    try:
        async with create_introspector(database_url, config) as introspector:
            names = await introspector.list_tables()
            for name in names:
                columns = await introspector.list_columns(name)
                table.add_row(
                    name,
                    str(len(columns)),
                    ", ".join(f"{c.name} {c.data_type}" for c in columns),
                )
    except DumpError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    console.print(table)
    console.print(f"\n{len(names)} table(s)")
    return 0


# ============================================================================
# Sync command wrappers (called by argparse)
# ============================================================================


def cmd_dump(args: argparse.Namespace) -> int:
    """Dump the database to a SQL artifact.

    Wraps the async implementation with ``asyncio.run()``.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure or interrupt.
    """
    try:
        return asyncio.run(_async_dump(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Backup cancelled.[/yellow] Partial file removed.")
        return 1


def cmd_tables(args: argparse.Namespace) -> int:
    """List tables and columns that a dump would cover.

    Wraps the async implementation with ``asyncio.run()``.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure.
    """
    return asyncio.run(_async_tables(args))


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Reads only local TOML config -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if db.toml not found or invalid.
    """
    try:
        config = _load(args)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    try:
        current = get_active_profile_name(env_prefix=getattr(args, "env_prefix", ""))
    except ProfileNotFoundError:
        current = None

    table = Table(
        title="Database Profiles", show_header=True, header_style="bold"
    )
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Provider")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.provider,
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = active profile")

    return 0


# ============================================================================
# Main entry point
# ============================================================================


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--profile",
        "-p",
        help="Profile from db.toml (default: {env-prefix}DB_PROFILE)",
    )
    parser.add_argument(
        "--database-url",
        help="Connection URL, bypasses profiles",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for ``db-snapshot``."""
    parser = argparse.ArgumentParser(
        prog="db-snapshot",
        description="Dump a PostgreSQL schema and its data to a SQL file",
    )

    parser.add_argument(
        "--config",
        "-c",
        help="Path to db.toml (default: ./db.toml)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Show log output (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # dump command
    p_dump = subparsers.add_parser(
        "dump",
        help="Dump schema and data to a timestamped SQL file",
    )
    _add_target_arguments(p_dump)
    p_dump.add_argument(
        "--output-dir",
        "-o",
        help="Directory for the artifact (default: [dump] destination)",
    )
    p_dump.add_argument(
        "--gzip",
        action="store_true",
        help="Write a gzip-compressed .sql.gz artifact",
    )
    p_dump.add_argument(
        "--no-snapshot",
        action="store_true",
        help="Do not hold a repeatable-read transaction for the run",
    )
    p_dump.add_argument(
        "--on-encoding-error",
        choices=["skip_row", "skip_table", "abort"],
        help="What to do with values that cannot be encoded",
    )
    p_dump.add_argument(
        "--notify",
        action="store_true",
        help="Send the notify.smtp mail on success",
    )
    p_dump.set_defaults(func=cmd_dump)

    # tables command
    p_tables = subparsers.add_parser(
        "tables",
        help="List tables and columns that would be dumped",
    )
    _add_target_arguments(p_tables)
    p_tables.set_defaults(func=cmd_tables)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
