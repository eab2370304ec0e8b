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
# nanosmart/src/nanosmart/__init__.py

"""Disk SMART telemetry collector and normalizer.

Run smartctl periodically against every disk, store one JSON document per
device plus an index, and normalize ATA and NVMe output into one health
record for dashboards.
"""

from .classifier import (
    ClassificationResult,
    DiskClassification,
    classify_device,
    discover_devices,
    filter_disks,
)
from .collector import RunSummary, run_collection
from .config import CollectorConfig, load_or_create_config
from .fleet import FleetSummary, summarize_fleet
from .index import IndexRecord, build_index, write_index
from .normalizer import (
    DeviceHealthRecord,
    Health,
    NvmeThresholds,
    SelfTestEntry,
    SmartAttribute,
    classify_document,
    normalize_document,
)
from .prober import probe_device
from .reader import load_records

__version__ = "0.1.0"

__all__ = [
    "ClassificationResult",
    "CollectorConfig",
    "DeviceHealthRecord",
    "DiskClassification",
    "FleetSummary",
    "Health",
    "IndexRecord",
    "NvmeThresholds",
    "RunSummary",
    "SelfTestEntry",
    "SmartAttribute",
    "build_index",
    "classify_device",
    "classify_document",
    "discover_devices",
    "filter_disks",
    "load_or_create_config",
    "load_records",
    "normalize_document",
    "probe_device",
    "run_collection",
    "summarize_fleet",
    "write_index",
]
