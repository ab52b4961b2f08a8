"""Repair command — add missing system prompts to an export file."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.panel import Panel

from chatexport.cli.main import console, fail, make_export_logger
from chatexport.core.errors import ChatExportError, atomic_write


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o",
    "--output",
    "output_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Where to write the repaired file (default: prefixed copy beside the input)",
)
@click.option("--check", is_flag=True, help="Report how many sessions need repair without writing")
@click.pass_context
def repair(ctx: click.Context, input_path: str, output_path: str | None, check: bool):
    """Add a default systemprompt to every session model config missing one.

    Fields the tool does not understand are kept as they are. The input file
    is never modified.
    """
    from chatexport.config import get_settings
    from chatexport.decode import read_export
    from chatexport.repair import repair_with_count, repaired_path

    settings = get_settings()
    export_logger = make_export_logger(ctx)

    try:
        repaired, patched = repair_with_count(read_export(input_path, settings.encoding))
    except ChatExportError as e:
        export_logger.close()
        fail("Error repairing JSON data", e)

    export_logger.repair_patched(input_path, patched)

    if check:
        export_logger.close()
        console.print(
            Panel(
                f"[bold]Input:[/bold] {input_path}\n"
                f"[bold]Sessions needing repair:[/bold] {patched}",
                title="[bold cyan]Repair check[/bold cyan]",
                border_style="cyan",
            )
        )
        sys.exit(1 if patched else 0)

    output = Path(output_path) if output_path else repaired_path(input_path, settings.repaired_prefix)
    try:
        atomic_write(output, repaired.decode("utf-8"), encoding=settings.encoding)
    except ChatExportError as e:
        export_logger.close()
        fail("Error writing repaired file", e)
    export_logger.close()

    console.print(f"[green]Repaired JSON data has been saved to:[/green] {output}")
    console.print(f"[dim]{patched} sessions patched[/dim]")
