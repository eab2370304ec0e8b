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
# nanosmart/src/nanosmart/collector.py

"""One collection run: discover disks, probe each, write the index."""

from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from .classifier import BlockCheck, TypeLookup, discover_devices
from .classifier import is_block_device, lsblk_type
from .config import CollectorConfig
from .errors import DeviceUnavailableError
from .index import IndexRecord, build_index, write_index
from .prober import CommandRunner, output_filename, probe_device, run_command


@dataclass
class RunSummary:
    """Outcome counters for one run."""
    devices: list[str] = field(default_factory=list)
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    dry_run: bool = False
    index: IndexRecord | None = None

    @property
    def exit_code(self) -> int:
        return len(self.failed)


def run_collection(
    config: CollectorConfig,
    smartctl: str = "smartctl",
    runner: CommandRunner = run_command,
    is_block: BlockCheck = is_block_device,
    lookup_type: TypeLookup | None = lsblk_type,
) -> RunSummary:
    """Probe every discovered disk sequentially and write index.json.

    Per-device failures are logged and counted; they never stop the run.
    In dry-run mode nothing is probed but the index is still written.
    """
    output_dir = Path(config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    devices = discover_devices(
        config.device_patterns, config.exclude_patterns,
        is_block=is_block, lookup_type=lookup_type
    )
    summary = RunSummary(devices=devices, dry_run=config.dry_run)

    if config.dry_run:
        logger.info("DRY RUN: Would process the following disk devices:")
        for device in devices:
            logger.info(f"  {device} -> {output_dir / output_filename(device)}")
    else:
        logger.info(f"Starting to process {len(devices)} devices...")
        for device in devices:
            logger.info(f"Processing device: {device}")
            try:
                output_file = probe_device(
                    device,
                    output_dir,
                    json_format=config.json_format,
                    smartctl=smartctl,
                    runner=runner,
                    is_block=is_block,
                    timeout=config.timeout or None,
                )
            except (DeviceUnavailableError, OSError) as e:
                logger.warning(f"Device {device} failed to process ({e}), "
                               f"continuing with next device")
                summary.failed.append(device)
                continue
            summary.succeeded.append(device)
            logger.info(f"Successfully processed {device} -> {output_file}")

    summary.index = build_index(devices)
    write_index(output_dir, summary.index, config.json_format)

    if not config.dry_run:
        logger.info(f"Processing complete: {len(summary.succeeded)} "
                    f"successful, {len(summary.failed)} errors")
    return summary
