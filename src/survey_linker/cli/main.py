#!/usr/bin/env python3
"""
Survey Linker CLI - build DynetML networks from survey data sheets
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from survey_linker.network import (
    DefinitionError,
    LinkerPipeline,
    NodeDefinitionRegistry,
    SurveyFormatError,
    load_definitions,
    read_survey,
)
from survey_linker.settings import settings

console = Console()


def _configure_logging() -> None:
    import logging

    level = (settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _load_registry(path: str) -> NodeDefinitionRegistry:
    try:
        return load_definitions(path)
    except (OSError, DefinitionError) as e:
        raise click.ClickException(str(e)) from e


definitions_option = click.option(
    "--definitions",
    "-d",
    "definitions_path",
    required=True,
    type=click.Path(dir_okay=False),
    help="JSON file with node definitions",
)
delimiter_option = click.option("--delimiter", default=None, help="Cell separator (default: tab)")


@click.group()
def cli():
    """Survey Linker - identify nodes in survey data and link them"""
    _configure_logging()


@cli.command()
@click.argument("data", type=click.Path(dir_okay=False))
@definitions_option
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False), help="DynetML file to write")
@click.option("--network-id", default=None, help="Network id (default: data file name)")
@delimiter_option
def link(data, definitions_path, output, network_id, delimiter):
    """Write the DynetML network for a data sheet"""
    registry = _load_registry(definitions_path)
    output = output or str(Path(data).with_suffix(".xml"))
    if Path(output).resolve() == Path(data).resolve():
        raise click.ClickException(f"refusing to overwrite the data sheet {data}; pass --output")

    try:
        stats = LinkerPipeline(registry).run(data, output, network_id=network_id, delimiter=delimiter)
    except (OSError, SurveyFormatError) as e:
        raise click.ClickException(str(e)) from e

    table = Table(title=f"Network written to {output}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Rows", f"{stats.rows:,}")
    table.add_row("Entities", f"{stats.entities:,}")
    table.add_row("Ties", f"{stats.ties:,}")
    table.add_row("Links written", f"{stats.links:,}")
    table.add_row("Dangling ties", f"{stats.dangling:,}")
    table.add_row("Type collisions", f"{stats.collisions:,}")
    table.add_row("Time (ms)", f"{stats.read_ms + stats.resolve_ms + stats.write_ms:.1f}")
    console.print(table)

    if stats.dangling or stats.collisions:
        console.print("[yellow]Some ties or types were dropped; see the log for details[/yellow]")


@cli.command()
@click.argument("data", type=click.Path(dir_okay=False))
@delimiter_option
def headers(data, delimiter):
    """List the fields available for node definitions"""
    try:
        survey = read_survey(data, delimiter=delimiter)
    except (OSError, SurveyFormatError) as e:
        raise click.ClickException(str(e)) from e

    table = Table(title=f"Headers in {data}")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Field", style="white")
    table.add_column("Filled", style="green", justify="right")
    for i, name in enumerate(survey.headers, start=1):
        filled = sum(1 for row in survey.rows if row.get(name))
        table.add_row(str(i), name, f"{filled:,}/{len(survey.rows):,}")
    console.print(table)


@cli.command()
@click.argument("data", type=click.Path(dir_okay=False))
@definitions_option
@delimiter_option
def inspect(data, definitions_path, delimiter):
    """Resolve entities without writing, and summarize them per type"""
    registry = _load_registry(definitions_path)
    pipeline = LinkerPipeline(registry)
    try:
        state = pipeline.resolve(pipeline.read(data, delimiter=delimiter))
    except (OSError, SurveyFormatError) as e:
        raise click.ClickException(str(e)) from e

    console.print(Panel.fit(f"[bold cyan]{state.rows:,} rows, {len(state.entities):,} entities[/bold cyan]"))

    incoming: dict[str, int] = {}
    for entity in state.entities.values():
        for target_id in entity.ties:
            target = state.entities.get(target_id)
            if target is not None:
                incoming[target.type] = incoming.get(target.type, 0) + 1

    table = Table(title="Entities by Type")
    table.add_column("Type", style="magenta")
    table.add_column("Entities", style="green", justify="right")
    table.add_column("Incoming ties", style="blue", justify="right")
    for node_type in registry.known_types:
        count = sum(1 for e in state.entities.values() if e.type == node_type)
        table.add_row(node_type, f"{count:,}", f"{incoming.get(node_type, 0):,}")
    console.print(table)

    for collision in state.collisions:
        console.print(
            f"[yellow]{collision.entity_id!r} is a {collision.kept_type}; "
            f"also claimed as {collision.other_type}[/yellow]"
        )


@cli.command()
def version():
    """Print the package version"""
    from survey_linker import __version__

    console.print(__version__)


if __name__ == "__main__":
    cli()
