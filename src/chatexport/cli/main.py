"""chatexport CLI — main entry point and shared utilities."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path

import click
from rich.console import Console

from chatexport.core.cancel import CancellationToken, install_signal_handlers
from chatexport.core.errors import ChatExportError, InvalidFormatError
from chatexport.core.logging import ExportLogger, Verbosity, setup_logging

console = Console()

# Exit status for an export stopped by SIGINT/SIGTERM, as a shell would report it
EXIT_CANCELLED = 130


def fail(message: str, error: Exception | None = None) -> None:
    """Print an error and exit with status 1."""
    if error is not None:
        console.print(f"[red]{message}:[/red] {error}")
    else:
        console.print(f"[red]{message}[/red]")
    sys.exit(1)


def make_export_logger(ctx: click.Context) -> ExportLogger:
    """Build the run logger from the global CLI options."""
    from chatexport.config import get_settings

    obj = ctx.find_root().obj or {}
    verbose = obj.get("verbose", 0)
    log_dir = obj.get("log_dir") or get_settings().log_dir
    return ExportLogger(
        verbosity=Verbosity(min(verbose, Verbosity.DEBUG)),
        log_dir=Path(log_dir) if log_dir else None,
        console=console,
    )


@contextmanager
def cancellable():
    """Yield a CancellationToken wired to SIGINT/SIGTERM for the block."""
    token = CancellationToken()
    restore = install_signal_handlers(
        token, on_signal=lambda signum: console.print("\n[yellow]Exiting gracefully...[/yellow]"),
    )
    try:
        yield token
    finally:
        restore()


def report_projection(result) -> None:
    """Print where rows went; exit with EXIT_CANCELLED on a partial export."""
    for location in result.locations:
        rows = result.rows_written.get(location, 0)
        console.print(f"[green]Saved[/green] {location} [dim]({rows} rows)[/dim]")
    if result.cancelled:
        console.print(
            f"[yellow]Export cancelled[/yellow] after {result.sessions} sessions; "
            "the files above are incomplete."
        )
        sys.exit(EXIT_CANCELLED)


def confirm_overwrite(path: Path, yes: bool) -> bool:
    """Ask before replacing an existing output file."""
    if yes or not path.exists():
        return True
    return click.confirm(f"File '{path}' already exists. Overwrite?", default=False)


def load_sessions(input_path: str):
    """Read an export file, exiting with status 1 on any read or parse error."""
    from chatexport.config import get_settings
    from chatexport.decode import read_store

    try:
        return read_store(input_path, get_settings().encoding).sessions
    except ChatExportError as e:
        fail("Error reading or parsing the JSON file", e)


def resolve_format(value: str):
    from chatexport.projections import parse_format

    try:
        return parse_format(value)
    except InvalidFormatError as e:
        fail("Invalid CSV format option", e)


@click.group(invoke_without_command=True)
@click.option("-v", "--verbose", count=True, help="Show progress (-v) or per-session detail (-vv)")
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Write a JSONL event log to this directory",
)
@click.pass_context
def main(ctx: click.Context, verbose: int, log_dir: str | None):
    """chatexport — convert ChatGPT-Next-Web session exports to CSV or datasets.

    Runs the interactive prompts when no command is given.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["log_dir"] = log_dir
    setup_logging(verbose >= Verbosity.DEBUG)

    if ctx.invoked_subcommand is None:
        ctx.invoke(interactive)


def cli():
    """Entrypoint that loads .env before running the CLI."""
    from dotenv import load_dotenv

    load_dotenv()
    main()


# Import subcommand modules to register commands
from chatexport.cli.convert_commands import csv_command, dataset, separate  # noqa: E402
from chatexport.cli.interactive_commands import interactive  # noqa: E402
from chatexport.cli.repair_commands import repair  # noqa: E402

# Register commands
main.add_command(csv_command, name="csv")
main.add_command(separate)
main.add_command(dataset)
main.add_command(repair)
main.add_command(interactive)
