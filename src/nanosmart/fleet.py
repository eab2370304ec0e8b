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
# nanosmart/src/nanosmart/fleet.py

"""Aggregate health figures across all devices of a host."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

import polars as pl

from .normalizer import DeviceHealthRecord, Health

FLEET_SCHEMA: Final[dict[str, pl.DataType]] = {
    "device": pl.Utf8,
    "schema": pl.Utf8,
    "health": pl.Utf8,
    "temperature": pl.Int64,
    "power_on_hours": pl.Int64,
    "failing_attributes": pl.Int64,
}

INT64_MIN: Final[int] = -(2 ** 63)
INT64_MAX: Final[int] = 2 ** 63 - 1


def _int64(value: int | None) -> int | None:
    # out-of-range readings are treated as missing
    if value is None or not INT64_MIN <= value <= INT64_MAX:
        return None
    return value


@dataclass(frozen=True)
class FleetSummary:
    """Host-wide counts derived from normalized records."""
    total_devices: int
    healthy_devices: int
    warning_devices: int
    critical_devices: int
    unknown_devices: int
    nvme_devices: int
    ata_devices: int
    failing_attributes: int
    max_temperature: int | None
    oldest_drive_hours: int
    newest_drive_hours: int

    def to_dict(self) -> dict:
        return {
            'total_devices': self.total_devices,
            'health': {
                'good': self.healthy_devices,
                'warning': self.warning_devices,
                'critical': self.critical_devices,
                'unknown': self.unknown_devices,
            },
            'types': {
                'nvme': self.nvme_devices,
                'ata': self.ata_devices,
            },
            'failing_attributes': self.failing_attributes,
            'max_temperature': self.max_temperature,
            'oldest_drive_hours': self.oldest_drive_hours,
            'newest_drive_hours': self.newest_drive_hours,
        }


def records_frame(records: Sequence[DeviceHealthRecord]) -> pl.DataFrame:
    """One row per device with the columns used for aggregation."""
    rows = [
        {
            "device": record.id,
            "schema": record.schema,
            "health": record.health.value,
            "temperature": _int64(record.temperature),
            "power_on_hours": _int64(record.power_on_hours),
            "failing_attributes": len(record.failing_attributes),
        }
        for record in records
    ]
    return pl.DataFrame(rows, schema=FLEET_SCHEMA)


def summarize_fleet(records: Sequence[DeviceHealthRecord]) -> FleetSummary:
    frame = records_frame(records)

    def count(column: str, value: str) -> int:
        return frame.filter(pl.col(column) == value).height

    hours = frame.filter(pl.col("power_on_hours") > 0)["power_on_hours"]
    max_temperature = frame["temperature"].max()

    return FleetSummary(
        total_devices=frame.height,
        healthy_devices=count("health", Health.GOOD.value),
        warning_devices=count("health", Health.WARNING.value),
        critical_devices=count("health", Health.CRITICAL.value),
        unknown_devices=count("health", Health.UNKNOWN.value),
        nvme_devices=count("schema", "nvme"),
        ata_devices=count("schema", "ata"),
        failing_attributes=int(frame["failing_attributes"].sum() or 0),
        max_temperature=(
            int(max_temperature) if max_temperature is not None else None
        ),
        oldest_drive_hours=int(hours.max()) if hours.len() else 0,
        newest_drive_hours=int(hours.min()) if hours.len() else 0,
    )
