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
# nanosmart/src/nanosmart/index.py

"""The index.json manifest written after every collection run."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Final

from loguru import logger

from .jsonio import write_json_atomic
from .prober import output_filename

INDEX_FILENAME: Final[str] = "index.json"


@dataclass(frozen=True)
class IndexRecord:
    """Summary of one collection run."""
    last_run: int
    last_run_iso: str
    json_files: list[str] = field(default_factory=list)

    @property
    def total_devices(self) -> int:
        return len(self.json_files)

    def to_dict(self) -> dict:
        return {
            'last_run': self.last_run,
            'last_run_iso': self.last_run_iso,
            'total_devices': self.total_devices,
            'json_files': list(self.json_files),
        }


def build_index(devices: Iterable[str],
                now: datetime | None = None) -> IndexRecord:
    """List the output file every device should have produced."""
    now = (now or datetime.now()).astimezone()
    return IndexRecord(
        last_run=int(now.timestamp()),
        last_run_iso=now.isoformat(timespec="seconds"),
        json_files=[output_filename(device) for device in devices],
    )


def write_index(output_dir: str | Path, record: IndexRecord,
                json_format: str = "pretty") -> Path:
    path = write_json_atomic(
        Path(output_dir) / INDEX_FILENAME, record.to_dict(), json_format
    )
    logger.info(f"Created index.json with {record.total_devices} devices")
    return path
