# -*- coding: utf-8 -*-
"""
GreenVisio CLI
====================

Estimate the environmental damage of a videoconference meeting from a
JSON request file.

    greenvisio estimate meeting.json
    greenvisio estimate meeting.json --json
    greenvisio catalog
"""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from greenvisio import __version__
from greenvisio.exceptions import GreenVisioException

app = typer.Typer(
    name="greenvisio",
    help="GreenVisio: environmental damage of videoconference meetings",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()

_DAMAGE_ROWS = (
    ("Hardware", "hardwareDamage"),
    ("Software", "softwareDamage"),
    ("Journeys", "journeyDamage"),
    ("Total", "totalDamage"),
)


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        from greenvisio.config import get_config
        logging.basicConfig(level=get_config().log_level)


@app.command()
def version():
    """Show GreenVisio version"""
    console.print(f"[bold green]GreenVisio v{__version__}[/bold green]")


@app.command()
def estimate(
    request_path: Path = typer.Argument(
        ...,
        help="Path to a JSON meeting request",
        exists=True,
        dir_okay=False,
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON result"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Estimate the damage of a meeting"""
    _setup_logging(verbose)

    try:
        request = json.loads(request_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {request_path}: {e}[/red]")
        raise typer.Exit(1)

    from greenvisio.service import get_service

    try:
        result = get_service().estimate(request)
    except GreenVisioException as e:
        console.print(f"[red]{e.error_code}: {e.message}[/red]")
        for field_name, reason in e.context.get("invalid_fields", {}).items():
            console.print(f"  [yellow]{field_name}[/yellow]: {reason}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(data=result)
        return

    table = Table(title=f"Meeting damage ({request.get('user', 'anonymous')})")
    table.add_column("Category", style="cyan")
    table.add_column("Human Health (DALY)", justify="right")
    table.add_column("Ecosystem Quality (PDF.m2.yr)", justify="right")
    table.add_column("Climate Change (kg CO2 eq)", justify="right")
    table.add_column("Resources (MJ)", justify="right")
    for label, key in _DAMAGE_ROWS:
        damage = result[key]
        table.add_row(
            label,
            f"{damage['humanHealth']:.3e}",
            f"{damage['ecosystemQuality']:.4f}",
            f"{damage['climateChange']:.4f}",
            f"{damage['resources']:.3f}",
            style="bold" if key == "totalDamage" else None,
        )
    console.print(table)
    if result["provenanceHash"]:
        console.print(f"[dim]Provenance: {result['provenanceHash']}[/dim]")


@app.command()
def catalog(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """List known hardware, software and transportation means"""
    _setup_logging(verbose)

    from greenvisio.service import get_service

    entries = get_service().catalog()

    table = Table(title="Reference database")
    table.add_column("Type", style="cyan")
    table.add_column("Name")
    table.add_column("Label")
    table.add_column("Details")
    for record in entries["hardware"]:
        details = []
        if record["isSizeDependent"]:
            details.append("size dependent")
        if record["components"]:
            details.append("components: " + ", ".join(record["components"]))
        table.add_row("hardware", record["name"], record["label"], "; ".join(details))
    for record in entries["software"]:
        table.add_row(
            "software",
            record["name"],
            record["label"],
            "" if record["hasBandwidth"] else "bandwidth unknown",
        )
    for record in entries["transport"]:
        table.add_row("transport", record["name"], record["label"], "")
    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
