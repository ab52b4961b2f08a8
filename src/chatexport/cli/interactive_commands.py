"""Interactive command — the prompt-driven export flow."""

from __future__ import annotations

import sys
import time
from pathlib import Path

import click

from chatexport.cli.interactivity import LineReader, PromptCancelled
from chatexport.cli.main import (
    cancellable,
    console,
    fail,
    make_export_logger,
    report_projection,
)
from chatexport.core.errors import ChatExportError, InvalidFormatError, atomic_write

PROMPT_JSON_PATH = "Enter the path to the JSON file: "
PROMPT_REPAIR = "Do you want to repair data? (yes/no): "
PROMPT_OUTPUT_FORMAT = "Select the output format:\n1) CSV\n2) Hugging Face Dataset\n"
PROMPT_CSV_FORMAT = (
    "Select the message output format:\n"
    "1) Inline Formatting\n"
    "2) One Message Per Line\n"
    "3) JSON String in CSV\n"
    "4) Separate Files for Sessions and Messages\n"
)
PROMPT_CSV_NAME = "Enter the name of the CSV file to save: "
PROMPT_SESSIONS_NAME = "Enter the name of the sessions CSV file to save: "
PROMPT_MESSAGES_NAME = "Enter the name of the messages CSV file to save: "
PROMPT_SAVE = "Do you want to save the output to a file? (yes/no)\n"
PROMPT_DATASET_NAME = "Enter the name of the dataset file to save: "


@click.command()
@click.pass_context
def interactive(ctx: click.Context):
    """Walk through repair or conversion with line-by-line prompts.

    Ctrl+C or end of input while waiting for an answer exits cleanly.
    """
    from chatexport.config import get_settings

    settings = get_settings()
    console.print("[bold cyan]ChatGPT Session Exporter[/bold cyan]")

    with cancellable() as token:
        reader = LineReader(console, token=token, poll_interval=settings.prompt_poll_interval)
        try:
            _run(ctx, reader, settings)
        except PromptCancelled as e:
            console.print(f"\n[dim]Reason: {e}. Exiting program.[/dim]")
            sys.exit(0)


def _run(ctx: click.Context, reader: LineReader, settings) -> None:
    json_path = reader.prompt(PROMPT_JSON_PATH)

    if reader.ask_yes(PROMPT_REPAIR):
        _repair(ctx, json_path, settings)
        return

    from chatexport.decode import read_store

    try:
        sessions = read_store(json_path, settings.encoding).sessions
    except ChatExportError as e:
        fail("Error reading or parsing the JSON file", e)

    option = reader.prompt(PROMPT_OUTPUT_FORMAT)
    if option == "1":
        _export_csv(ctx, reader, json_path, sessions, settings)
    elif option == "2":
        _export_dataset(reader, sessions, settings)
    else:
        fail("Invalid output option.")


def _repair(ctx: click.Context, json_path: str, settings) -> None:
    from chatexport.decode import read_export
    from chatexport.repair import repair_with_count, repaired_path

    export_logger = make_export_logger(ctx)
    try:
        repaired, patched = repair_with_count(read_export(json_path, settings.encoding))
    except ChatExportError as e:
        export_logger.close()
        fail("Error repairing JSON data", e)

    output = repaired_path(json_path, settings.repaired_prefix)
    try:
        atomic_write(output, repaired.decode("utf-8"), encoding=settings.encoding)
    except ChatExportError as e:
        export_logger.close()
        fail("Error writing repaired file", e)
    export_logger.repair_patched(json_path, patched)
    export_logger.close()
    console.print(f"[green]Repaired JSON data has been saved to:[/green] {output}")


def _export_csv(ctx: click.Context, reader: LineReader, json_path: str, sessions, settings) -> None:
    from chatexport.projections import (
        CSVFormat,
        convert_sessions_to_csv,
        create_separate_csv_files,
        parse_format,
    )

    choice = reader.prompt(PROMPT_CSV_FORMAT)
    try:
        fmt = parse_format(choice)
    except InvalidFormatError:
        fail("Invalid CSV format option.")

    if fmt is CSVFormat.SEPARATE_FILES:
        sessions_name = reader.prompt(PROMPT_SESSIONS_NAME)
        if not reader.confirm_overwrite(Path(sessions_name)):
            console.print("Operation cancelled by the user for sessions file.")
            return
        messages_name = reader.prompt(PROMPT_MESSAGES_NAME)
        if not reader.confirm_overwrite(Path(messages_name)):
            console.print("Operation cancelled by the user for messages file.")
            return
    else:
        csv_name = reader.prompt(PROMPT_CSV_NAME)
        if not reader.confirm_overwrite(Path(csv_name)):
            console.print("Operation cancelled by the user.")
            return

    export_logger = make_export_logger(ctx)
    export_logger.export_start(json_path, len(sessions))
    start = time.time()
    try:
        if fmt is CSVFormat.SEPARATE_FILES:
            result = create_separate_csv_files(
                sessions, sessions_name, messages_name,
                cancel=reader.token, export_logger=export_logger, encoding=settings.encoding,
            )
        else:
            result = convert_sessions_to_csv(
                sessions, fmt, csv_name,
                cancel=reader.token, export_logger=export_logger, encoding=settings.encoding,
            )
    except ChatExportError as e:
        export_logger.close()
        fail("Failed to convert sessions to CSV", e)
    export_logger.export_finish(time.time() - start)
    report_projection(result)


def _export_dataset(reader: LineReader, sessions, settings) -> None:
    from chatexport.dataset import extract_to_dataset

    content = extract_to_dataset(sessions)

    if not reader.ask_yes(PROMPT_SAVE):
        click.echo(content)
        return

    file_name = reader.prompt(PROMPT_DATASET_NAME)
    if not file_name:
        console.print("No file name entered. Operation cancelled.")
        return

    output = Path(file_name + ".json")
    if not reader.confirm_overwrite(output):
        console.print("Operation cancelled by the user.")
        return

    try:
        atomic_write(output, content, encoding=settings.encoding)
    except ChatExportError as e:
        fail("Error writing file", e)
    console.print(f"[green]Dataset output saved to[/green] {output}")
