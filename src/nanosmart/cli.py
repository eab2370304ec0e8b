# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.05.13
# Copyright (C) 2025 HRDAG https://hrdag.org
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along
# with this program; if not, see <https://www.gnu.org/licenses/>.
#
# ------
# nanosmart/src/nanosmart/cli.py

"""Command-line interface for SMART collection and display."""

import json
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.text import Text

from .collector import run_collection
from .config import DEFAULT_CONFIG_FILE, load_or_create_config, split_patterns
from .display import display_device, display_fleet
from .errors import IndexUnavailableError, MissingDependencyError
from .fleet import summarize_fleet
from .prober import check_dependencies
from .reader import load_records

LOG_FORMAT = "[{time:YYYY-MM-DD HH:mm:ss}] [{level}] {message}"

app = typer.Typer(help="Collect and inspect disk SMART health data.")


def configure_logging(log_file: str, verbose: bool) -> None:
    """Log to stderr and, unless log_file is empty, to a file."""
    level = "DEBUG" if verbose else "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level=level, format=LOG_FORMAT)


@app.command()
def collect(
    config_file: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILE),
        "--config",
        "-c",
        help="Configuration file, created with current settings if absent"
    ),
    output_dir: str | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output directory for JSON files"
    ),
    log_file: str | None = typer.Option(
        None,
        "--log",
        "-l",
        help='Log file (use "" to disable the log file)'
    ),
    devices: str | None = typer.Option(
        None,
        "--devices",
        "-d",
        help='Device patterns to scan, e.g. "/dev/sd* /dev/nvme*"'
    ),
    exclude: str | None = typer.Option(
        None,
        "--exclude",
        "-e",
        help="Exclude devices matching these patterns"
    ),
    json_format: str | None = typer.Option(
        None,
        "--format",
        "-f",
        help="JSON format: pretty, compact or basic"
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show what would be done and write only index.json"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging output"
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each smartctl call (0 waits forever)"
    ),
):
    """Run smartctl on all disks and write one JSON file per device.

    Exits with the number of devices that failed, or 1 when smartctl is
    not installed.
    """
    overrides = {
        "output_dir": output_dir,
        "log_file": log_file,
        "device_patterns": (
            split_patterns(devices) if devices is not None else None
        ),
        "exclude_patterns": (
            split_patterns(exclude) if exclude is not None else None
        ),
        "json_format": json_format,
        "timeout": timeout,
        "dry_run": dry_run,
        "verbose": verbose,
    }
    try:
        config = load_or_create_config(config_file, overrides)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    try:
        configure_logging(config.log_file, config.verbose)
    except OSError as e:
        logger.error(f"Cannot open log file {config.log_file}: {e}")
        raise typer.Exit(1)
    logger.info("Starting SMART monitor")
    logger.info(f"Output directory: {config.output_dir}")
    logger.info(f"Log file: {config.log_file or 'None (logging disabled)'}")
    logger.info(f"Device pattern: {' '.join(config.device_patterns)}")
    logger.info(f"JSON format: {config.json_format}")

    try:
        smartctl = check_dependencies()
    except MissingDependencyError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    try:
        summary = run_collection(config, smartctl=smartctl)
    except OSError as e:
        logger.error(f"Cannot write to output directory "
                     f"{config.output_dir}: {e}")
        raise typer.Exit(1)
    logger.info("SMART monitor completed")
    raise typer.Exit(summary.exit_code)


@app.command()
def show(
    output_dir: Path = typer.Argument(
        Path("output"),
        help="Directory written by the collect command"
    ),
    device: str | None = typer.Option(
        None,
        "--device",
        "-D",
        help="Show attributes and self-tests for one device (e.g. sda)"
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output normalized records as JSON"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging output"
    ),
):
    """Display normalized SMART health from a collect output directory."""
    if not verbose:
        logger.remove()
        logger.add(lambda _: None)  # Suppress all logging
    else:
        configure_logging("", True)

    console = Console()
    try:
        result = load_records(output_dir)
    except IndexUnavailableError as e:
        console.print(Text(f"Error: {e}", style="red"))
        console.print("Run [cyan]nanosmart collect[/cyan] and try again.")
        raise typer.Exit(1)

    records = result.records
    if device:
        name = device.removeprefix("/dev/")
        records = [r for r in records if r.id == name]
        if not records:
            console.print(Text(f"Device {name} not found in {output_dir}",
                               style="red"))
            raise typer.Exit(1)

    if json_output:
        output = {
            "last_run_iso": result.last_run_iso,
            "summary": summarize_fleet(records).to_dict(),
            "devices": [record.to_dict() for record in records],
            "errors": result.errors,
        }
        typer.echo(json.dumps(output, indent=2))
    elif device:
        display_device(records[0], console)
    else:
        display_fleet(records, console, errors=result.errors)


if __name__ == "__main__":
    app()
