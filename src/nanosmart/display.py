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
# nanosmart/src/nanosmart/display.py

"""Rich tabular display for normalized SMART health records."""

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .fleet import FleetSummary, summarize_fleet
from .normalizer import DeviceHealthRecord, Health

TEMP_WARNING = 60.0
TEMP_CRITICAL = 70.0

HEALTH_STYLES: dict[Health, tuple[str, str]] = {
    Health.GOOD: ("🟢", "green"),
    Health.WARNING: ("🟡", "yellow"),
    Health.CRITICAL: ("🔴", "red"),
    Health.UNKNOWN: ("⚪", "dim"),
}


def get_temp_color(temp: float | None, warning: float | None,
                   critical: float | None) -> str:
    """Get color for temperature based on thresholds."""
    if temp is None:
        return "dim"

    if critical and temp >= critical:
        return "red"
    elif warning and temp >= warning:
        return "orange1"
    elif warning and temp >= (warning * 0.9):  # Within 10% of warning
        return "yellow"
    else:
        return "green"


def get_health_style(health: Health) -> tuple[str, str]:
    """Get status emoji and color for a health verdict."""
    return HEALTH_STYLES.get(health, HEALTH_STYLES[Health.UNKNOWN])


def format_health(health: Health) -> Text:
    emoji, color = get_health_style(health)
    return Text(f"{emoji} {health.value}", style=color)


def format_temp(temp: float | None, warning: float | None = TEMP_WARNING,
                critical: float | None = TEMP_CRITICAL) -> Text:
    """Format temperature with color."""
    if temp is None:
        return Text("N/A", style="dim")

    color = get_temp_color(temp, warning, critical)
    return Text(f"{round(temp)}°C", style=color)


def format_power_on(hours: int) -> str:
    if hours <= 0:
        return "N/A"
    return f"{hours // 24:,d}d"


def create_fleet_summary_table(summary: FleetSummary) -> Table:
    """Create the host summary table."""
    table = Table(title="System Health Summary", show_header=False)

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    rows = (
        ("Healthy", summary.healthy_devices, Health.GOOD),
        ("Warning", summary.warning_devices, Health.WARNING),
        ("Critical", summary.critical_devices, Health.CRITICAL),
        ("Unknown", summary.unknown_devices, Health.UNKNOWN),
    )
    table.add_row("Total Devices", str(summary.total_devices))
    for label, count, health in rows:
        emoji, color = get_health_style(health)
        text = Text(f"{count} ", style=color)
        text.append(emoji, style=color)
        table.add_row(label, text)
    table.add_section()

    table.add_row("Max Temperature", format_temp(summary.max_temperature))
    failing_style = "red bold" if summary.failing_attributes else "dim"
    table.add_row(
        "Failing Attributes",
        Text(str(summary.failing_attributes), style=failing_style)
    )
    table.add_section()

    oldest_days = summary.oldest_drive_hours // 24
    newest_days = summary.newest_drive_hours // 24
    table.add_row(
        "Drive Age Range",
        f"{newest_days:,d} - {oldest_days:,d} days"
    )
    table.add_row(
        "Drive Types",
        f"{summary.ata_devices} ATA, {summary.nvme_devices} NVMe"
    )

    return table


def create_devices_table(records: Sequence[DeviceHealthRecord]) -> Table:
    """Create one row per device."""
    table = Table(title="Drive Health Details", show_edge=True)

    table.add_column("Device", style="cyan")
    table.add_column("Model")
    table.add_column("Serial", style="dim")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    table.add_column("Temp", justify="right")
    table.add_column("Power On", justify="right")
    table.add_column("Failing", justify="right")
    table.add_column("Last Check", style="dim")

    for record in records:
        failing = len(record.failing_attributes)
        failing_text = (
            Text(str(failing), style="yellow") if failing
            else Text("0", style="dim")
        )
        last_check = (
            record.last_check.strftime("%Y-%m-%d %H:%M")
            if record.last_check else "Unknown"
        )
        row_style = "bold" if record.health is Health.CRITICAL else None

        table.add_row(
            escape(record.name),
            escape(record.model),
            escape(record.serial),
            escape(record.device_type),
            escape(record.size),
            format_health(record.health),
            format_temp(record.temperature),
            format_power_on(record.power_on_hours),
            failing_text,
            last_check,
            style=row_style
        )

    return table


def create_attributes_table(record: DeviceHealthRecord) -> Table:
    """SMART attributes of one device, in source order."""
    table = Table(title=f"SMART Attributes: {escape(record.name)}")

    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Worst", justify="right")
    table.add_column("Thresh", justify="right")
    table.add_column("Raw", justify="right")
    table.add_column("Status")

    for attr in record.smart_attributes:
        table.add_row(
            escape(str(attr.id)),
            escape(attr.name),
            str(attr.value),
            str(attr.worst),
            str(attr.threshold),
            escape(attr.raw),
            format_health(attr.status),
        )

    return table


def create_selftest_table(record: DeviceHealthRecord) -> Table:
    table = Table(title=f"Self-Test Log: {escape(record.name)}")

    table.add_column("When")
    table.add_column("Type", style="cyan")
    table.add_column("Status")
    table.add_column("Duration", justify="right", style="dim")

    for entry in record.selftest_log:
        ok = "without error" in entry.status.lower()
        table.add_row(
            escape(entry.when),
            escape(entry.test_type),
            Text(entry.status, style="green" if ok else "yellow"),
            escape(entry.duration),
        )

    return table


def display_device(record: DeviceHealthRecord,
                   console: Console | None = None):
    """Display attribute and self-test tables for one device."""
    if console is None:
        console = Console()

    header = Text(record.name, style="cyan")
    header.append(
        f" {record.model} "
        f"({record.serial}, firmware {record.firmware}, {record.size})"
    )
    console.print(header)
    console.print(format_health(record.health))
    console.print(create_attributes_table(record))
    if record.selftest_log:
        console.print(create_selftest_table(record))
    else:
        console.print("[dim]No self-test log available[/dim]")


def display_fleet(records: Sequence[DeviceHealthRecord],
                  console: Console | None = None,
                  errors: Sequence[str] = ()):
    """Display summary and device tables, then any load errors."""
    if console is None:
        console = Console()

    console.print(create_fleet_summary_table(summarize_fleet(records)))
    console.print()
    console.print(create_devices_table(records))

    for error in errors:
        console.print(Text(error, style="red"))
