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
# nanosmart/src/nanosmart/reader.py

"""Load a collector output directory back into health records."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from .errors import IndexUnavailableError
from .index import INDEX_FILENAME
from .normalizer import DeviceHealthRecord, NvmeThresholds, normalize_document


@dataclass
class LoadResult:
    records: list[DeviceHealthRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    last_run_iso: str | None = None


def load_index(output_dir: str | Path) -> dict:
    """Read index.json.

    Raises:
        IndexUnavailableError: the file is missing or not a JSON object
    """
    path = Path(output_dir) / INDEX_FILENAME
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise IndexUnavailableError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise IndexUnavailableError(f"{path} is not a JSON object")
    return data


def load_records(
    output_dir: str | Path, thresholds: NvmeThresholds | None = None
) -> LoadResult:
    """Normalize every per-device file listed in index.json.

    Files that are missing or unreadable are reported in errors; the
    remaining devices are still returned in index order.
    """
    output_dir = Path(output_dir)
    index = load_index(output_dir)
    result = LoadResult(last_run_iso=index.get("last_run_iso"))

    json_files = index.get("json_files")
    if not isinstance(json_files, list):
        json_files = []

    for filename in json_files:
        path = output_dir / str(filename)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            message = f"Failed to load {filename}: {e}"
            logger.warning(message)
            result.errors.append(message)
            continue
        result.records.append(normalize_document(raw, thresholds))

    logger.debug(f"Loaded {len(result.records)} of {len(json_files)} "
                 f"device files from {output_dir}")
    return result
