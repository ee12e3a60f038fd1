"""Click CLI for distributor: allocate, inspect."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from pydantic import ValidationError

from distributor.codec import read_table, write_table
from distributor.config import DEFAULT_CONFIG, AllocationConfig, load_config
from distributor.engine import allocate_table
from distributor.errors import AllocationInputError, TableCodecError
from distributor.normalize import normalize_table


def _sheet_arg(sheet: str | None) -> str | int | None:
    if sheet is not None and sheet.isdigit():
        return int(sheet)
    return sheet


def _build_config(config_path: str | None, policy: str | None) -> AllocationConfig:
    try:
        config = load_config(config_path) if config_path else DEFAULT_CONFIG
    except json.JSONDecodeError as e:
        _fail(f"Invalid config file {config_path}: not valid JSON ({e})")
    except ValidationError as e:
        _fail(f"Invalid config file {config_path}: {e}")
    if policy:
        config = config.model_copy(update={"capacity_policy": policy})
    return config


def _fail(message: str) -> NoReturn:
    click.echo(message, err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", count=True, help="-v for info, -vv for debug logging")
def main(verbose: int) -> None:
    """Distributor: capacity-constrained round-robin allocation of tabular data."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", default=None, help="Output file (default: <input>_processed.xlsx)")
@click.option("--config", "config_path", type=click.Path(exists=True), default=None,
              help="JSON file with allocation options")
@click.option("--sheet", default=None, help="Sheet name or index (default: first sheet)")
@click.option("--policy", type=click.Choice(["independent", "shared"]), default=None,
              help="Capacity policy across demands")
def allocate(
    input_path: str,
    output: str | None,
    config_path: str | None,
    sheet: str | None,
    policy: str | None,
) -> None:
    """Allocate the quantities in INPUT_PATH and write the updated table."""
    config = _build_config(config_path, policy)
    src = Path(input_path)
    dest = Path(output) if output else src.with_name(f"{src.stem}_processed.xlsx")

    try:
        grid = read_table(src, sheet=_sheet_arg(sheet))
        report = allocate_table(grid, config)
        write_table(report.rows, dest)
    except AllocationInputError as e:
        _fail(
            f"{e.kind}: {e.detail}. Please ensure your file has "
            f"'{config.capacity_column}' and '{config.demand_column}' columns "
            f"or one of the supported layouts."
        )
    except TableCodecError as e:
        _fail(f"Could not process {src.name}: {e}")

    request = report.request
    click.echo(
        f"Layout {request.layout.value}: {len(request.containers)} container(s), "
        f"{len(request.demands)} demand(s)"
    )
    if report.total_unallocated:
        click.echo(f"Warning: {report.total_unallocated} unit(s) could not be placed", err=True)
    click.echo(f"Saved to {dest}")


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "config_path", type=click.Path(exists=True), default=None,
              help="JSON file with allocation options")
@click.option("--sheet", default=None, help="Sheet name or index (default: first sheet)")
def inspect(input_path: str, config_path: str | None, sheet: str | None) -> None:
    """Show the detected layout, containers and demands without allocating."""
    config = _build_config(config_path, None)
    try:
        request = normalize_table(read_table(input_path, sheet=_sheet_arg(sheet)), config)
    except (AllocationInputError, TableCodecError) as e:
        _fail(str(e))

    click.echo(f"Layout: {request.layout.value}")
    click.echo(f"Containers ({len(request.containers)}, total capacity {request.total_capacity}):")
    for container in request.containers:
        click.echo(f"  {container.name}: {container.capacity}")
    click.echo(f"Demands ({len(request.demands)}): {[d.quantity for d in request.demands]}")
