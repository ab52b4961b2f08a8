"""Convert commands — csv, separate, dataset."""

from __future__ import annotations

import time
from pathlib import Path

import click

from chatexport.cli.main import (
    cancellable,
    confirm_overwrite,
    console,
    fail,
    load_sessions,
    make_export_logger,
    report_projection,
    resolve_format,
)
from chatexport.core.errors import ChatExportError, atomic_write
from chatexport.projections import CSVFormat


@click.command("csv")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-f",
    "--format",
    "format_option",
    default="1",
    show_default=True,
    help="1 inline, 2 one message per line, 3 JSON string in CSV (or: inline, per-line, json)",
)
@click.option("-o", "--output", "output_path", required=True, type=click.Path(dir_okay=False))
@click.option("-y", "--yes", is_flag=True, help="Overwrite existing files without asking")
@click.pass_context
def csv_command(ctx: click.Context, input_path: str, format_option: str, output_path: str, yes: bool):
    """Convert an export to a single CSV file.

    Use the separate command for one file of sessions and one of messages.
    """
    from chatexport.config import get_settings
    from chatexport.projections import convert_sessions_to_csv

    fmt = resolve_format(format_option)
    if fmt is CSVFormat.SEPARATE_FILES:
        fail("Format 4 writes two files; use [bold]chatexport separate[/bold]")

    sessions = load_sessions(input_path)
    output = Path(output_path)
    if not confirm_overwrite(output, yes):
        console.print("[dim]Aborted.[/dim]")
        return

    export_logger = make_export_logger(ctx)
    export_logger.export_start(input_path, len(sessions))
    start = time.time()
    try:
        with cancellable() as token:
            result = convert_sessions_to_csv(
                sessions, fmt, output,
                cancel=token, export_logger=export_logger, encoding=get_settings().encoding,
            )
    except ChatExportError as e:
        export_logger.close()
        fail("Failed to convert sessions to CSV", e)
    export_logger.export_finish(time.time() - start)
    report_projection(result)


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--sessions", "sessions_path", required=True, type=click.Path(dir_okay=False), help="Sessions CSV")
@click.option("--messages", "messages_path", required=True, type=click.Path(dir_okay=False), help="Messages CSV")
@click.option("-y", "--yes", is_flag=True, help="Overwrite existing files without asking")
@click.pass_context
def separate(ctx: click.Context, input_path: str, sessions_path: str, messages_path: str, yes: bool):
    """Convert an export to a sessions CSV and a messages CSV."""
    from chatexport.config import get_settings
    from chatexport.projections import create_separate_csv_files

    sessions = load_sessions(input_path)
    for path in (Path(sessions_path), Path(messages_path)):
        if not confirm_overwrite(path, yes):
            console.print("[dim]Aborted.[/dim]")
            return

    export_logger = make_export_logger(ctx)
    export_logger.export_start(input_path, len(sessions))
    start = time.time()
    try:
        with cancellable() as token:
            result = create_separate_csv_files(
                sessions, sessions_path, messages_path,
                cancel=token, export_logger=export_logger, encoding=get_settings().encoding,
            )
    except ChatExportError as e:
        export_logger.close()
        fail("Error creating CSV files", e)
    export_logger.export_finish(time.time() - start)
    report_projection(result)


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", "output_path", default=None, type=click.Path(dir_okay=False),
              help="Dataset file (.json is appended if missing); prints to stdout when omitted")
@click.option("-y", "--yes", is_flag=True, help="Overwrite existing files without asking")
def dataset(input_path: str, output_path: str | None, yes: bool):
    """Convert an export to a {"dataset": [...]} JSON document."""
    from chatexport.config import get_settings
    from chatexport.dataset import extract_to_dataset

    sessions = load_sessions(input_path)
    content = extract_to_dataset(sessions)

    if output_path is None:
        click.echo(content)
        return

    output = Path(output_path)
    if output.suffix != ".json":
        output = output.with_name(output.name + ".json")
    if not confirm_overwrite(output, yes):
        console.print("[dim]Aborted.[/dim]")
        return

    try:
        atomic_write(output, content, encoding=get_settings().encoding)
    except ChatExportError as e:
        fail("Error writing file", e)
    console.print(f"[green]Dataset output saved to[/green] {output}")
