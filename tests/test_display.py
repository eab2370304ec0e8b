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
# nanosmart/tests/test_display.py

"""Tests for rich display functionality."""

from io import StringIO

from rich.console import Console

from nanosmart import DeviceHealthRecord, Health, normalize_document
from nanosmart.display import (
    create_attributes_table,
    create_devices_table,
    create_fleet_summary_table,
    create_selftest_table,
    display_device,
    display_fleet,
    format_power_on,
    format_temp,
    get_health_style,
    get_temp_color,
)
from nanosmart.fleet import summarize_fleet


def render(renderable) -> str:
    console = Console(file=StringIO(), width=200)
    console.print(renderable)
    return console.file.getvalue()


class TestDisplayHelpers:
    """Test display helper functions."""

    def test_get_temp_color(self):
        """Test temperature color logic."""
        # Normal temp
        assert get_temp_color(30, 60, 70) == "green"

        # Near warning (within 10%)
        assert get_temp_color(54, 60, 70) == "yellow"

        # At warning
        assert get_temp_color(60, 60, 70) == "orange1"

        # At critical
        assert get_temp_color(70, 60, 70) == "red"

        # None handling
        assert get_temp_color(None, 60, 70) == "dim"

    def test_get_health_style(self):
        """Test emoji and color per health verdict."""
        assert get_health_style(Health.GOOD) == ("🟢", "green")
        assert get_health_style(Health.WARNING) == ("🟡", "yellow")
        assert get_health_style(Health.CRITICAL) == ("🔴", "red")
        assert get_health_style(Health.UNKNOWN) == ("⚪", "dim")

    def test_format_temp(self):
        """Test temperature text and style."""
        text = format_temp(45)
        assert text.plain == "45°C"
        assert text.style == "green"
        assert format_temp(72).style == "red"
        assert format_temp(None).plain == "N/A"

    def test_format_power_on(self):
        """Test power-on hours shown as days."""
        assert format_power_on(21904) == "912d"
        assert format_power_on(240000) == "10,000d"
        assert format_power_on(0) == "N/A"


class TestTables:
    """Test table creation."""

    def test_fleet_summary_table(self, nvme_document, ata_document):
        """Test system summary table creation."""
        records = [normalize_document(nvme_document),
                   normalize_document(ata_document),
                   normalize_document({})]
        table = create_fleet_summary_table(summarize_fleet(records))
        assert table.title == "System Health Summary"
        assert len(table.columns) == 2

        output = render(table)
        assert "Total Devices" in output
        assert "3" in output
        assert "🟢" in output
        assert "⚪" in output
        assert "1 ATA, 1 NVMe" in output
        assert "45°C" in output

    def test_devices_table(self, nvme_document, ata_document):
        """Test devices table creation."""
        records = [normalize_document(nvme_document),
                   normalize_document(ata_document)]
        table = create_devices_table(records)
        assert table.title == "Drive Health Details"

        output = render(table)
        assert "nvme0n1" in output
        assert "S4EVNX0N123456" in output
        assert "sda" in output
        assert "WD-WCC7K1234567" in output
        assert "3726GB" in output
        assert "33°C" in output
        assert "912d" in output

    def test_devices_table_placeholders(self):
        """Test unknown values render without errors."""
        output = render(create_devices_table([normalize_document({})]))
        assert "Unknown Model" in output
        assert "N/A" in output
        assert "Unknown" in output

    def test_attributes_table(self, ata_document):
        """Test attribute table keeps source order."""
        record = normalize_document(ata_document)
        table = create_attributes_table(record)
        assert table.title == "SMART Attributes: sda"
        assert table.row_count == 5

        output = render(table)
        assert output.index("Reallocated_Sector_Ct") \
            < output.index("Spin_Up_Time")
        assert "184684904481" in output

    def test_selftest_table(self, ata_document):
        """Test self-test table rows."""
        record = normalize_document(ata_document)
        table = create_selftest_table(record)
        assert table.title == "Self-Test Log: sda"
        assert table.row_count == 2

        output = render(table)
        assert "21900 lifetime hours" in output
        assert "Extended offline" in output


class TestDisplay:
    """Test full renderers."""

    def test_display_fleet(self, nvme_document):
        """Test full fleet display."""
        console = Console(file=StringIO(), force_terminal=True, width=200)
        display_fleet([normalize_document(nvme_document)], console,
                      errors=["Failed to load sdb_smart.json: [Errno 2]"])
        output = console.file.getvalue()

        assert "System Health Summary" in output
        assert "Drive Health Details" in output
        assert "Failed to load sdb_smart.json: [Errno 2]" in output

    def test_display_empty_fleet(self):
        """Test display with no devices."""
        console = Console(file=StringIO(), width=200)
        display_fleet([], console)
        output = console.file.getvalue()
        assert "Total Devices" in output
        assert "0 ATA, 0 NVMe" in output

    def test_display_device(self, nvme_document):
        """Test single device detail display."""
        console = Console(file=StringIO(), width=200)
        display_device(normalize_document(nvme_document), console)
        output = console.file.getvalue()

        assert "SMART Attributes: nvme0n1" in output
        assert "Available Spare" in output
        assert "NVMe Health Check" in output

    def test_display_device_without_selftests(self):
        """Test message when a device has no self-test log."""
        console = Console(file=StringIO(), width=200)
        display_device(DeviceHealthRecord(id="sdc", name="sdc"), console)
        assert "No self-test log available" in console.file.getvalue()

    def test_markup_in_device_strings(self, ata_document):
        """Test bracketed vendor strings render literally."""
        ata_document["smart_data"]["device_info"]["model_name"] = \
            "WDC [/bold] [red]X"
        ata_document["smart_data"]["device_info"]["serial_number"] = "[/]"
        record = normalize_document(ata_document)

        console = Console(file=StringIO(), width=200)
        display_device(record, console)
        display_fleet([record], console)
        output = console.file.getvalue()

        assert "WDC [/bold] [red]X" in output
        assert "[/]" in output

    def test_huge_temperature(self):
        """Test temperatures beyond float range still format."""
        assert format_temp(10 ** 400).plain == f"{10 ** 400}°C"
