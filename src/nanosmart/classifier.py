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
# nanosmart/src/nanosmart/classifier.py

"""Block device discovery and disk/partition classification."""

import glob
import os
import re
import shutil
import stat
import subprocess
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Final

from loguru import logger

DEFAULT_DEVICE_PATTERNS: Final[tuple[str, ...]] = (
    "/dev/sd*", "/dev/nvme*", "/dev/hd*",
)

# sda1, hdb2, ... but also nvme0n1, which the namespace rule rescues
PARTITION_NAME: Final[re.Pattern] = re.compile(r"^[a-z]+[0-9]+$")
NVME_NAMESPACE_NAME: Final[re.Pattern] = re.compile(r"^nvme[0-9]+n[0-9]+$")
NVME_PARTITION_NAME: Final[re.Pattern] = re.compile(
    r"^nvme[0-9]+n[0-9]+p[0-9]+$"
)

BlockCheck = Callable[[str], bool]
TypeLookup = Callable[[str], str | None]


class DiskClassification(str, Enum):
    DISK = "disk"
    PARTITION = "partition"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CandidateDevice:
    """A path that may name a block device."""
    path: str

    @property
    def name(self) -> str:
        return Path(self.path).name


@dataclass(frozen=True)
class ClassificationResult:
    """Inclusion decision for one candidate device."""
    device: str
    classification: DiskClassification
    included: bool
    reason: str


def is_block_device(path: str) -> bool:
    """True if path exists and is a block special file."""
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except OSError:
        return False


def lsblk_type(device: str) -> str | None:
    """Ask lsblk for the TYPE column of a device.

    Returns None when lsblk is not installed, otherwise the reported type
    ("disk", "part", "rom", ...) or "" if lsblk could not answer.
    """
    lsblk = shutil.which("lsblk")
    if lsblk is None:
        return None
    try:
        result = subprocess.run(
            [lsblk, "-d", "-no", "TYPE", device],
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"lsblk failed for {device}: {e}")
        return ""
    if result.returncode != 0:
        return ""
    return result.stdout.strip().lower()


def classify_by_name(name: str) -> DiskClassification:
    """Classify a device base name using kernel naming conventions."""
    if NVME_NAMESPACE_NAME.match(name):
        return DiskClassification.DISK
    if NVME_PARTITION_NAME.match(name) or PARTITION_NAME.match(name):
        return DiskClassification.PARTITION
    return DiskClassification.DISK


def classify_device(
    device: str,
    exclude_patterns: Iterable[str] = (),
    is_block: BlockCheck = is_block_device,
    lookup_type: TypeLookup | None = lsblk_type,
) -> ClassificationResult:
    """Decide whether a device path is a physical disk worth probing.

    Args:
        device: Device path (e.g., /dev/sda, /dev/nvme0n1)
        exclude_patterns: Glob patterns matched against the full path
        is_block: Predicate telling whether a path is a block device
        lookup_type: Block-device metadata source, or None to rely on
                     the naming heuristic alone

    Returns:
        ClassificationResult with the decision and a human-readable reason
    """
    candidate = CandidateDevice(device)

    if not is_block(device):
        return ClassificationResult(
            device, DiskClassification.UNKNOWN, False,
            "not a block device"
        )

    classification = classify_by_name(candidate.name)
    reason = (
        "matches partition pattern"
        if classification is DiskClassification.PARTITION
        else "disk by name"
    )

    reported = lookup_type(device) if lookup_type is not None else None
    if reported == "part":
        classification = DiskClassification.PARTITION
        reason = "partition according to lsblk"
    elif reported == "disk":
        classification = DiskClassification.DISK
        reason = "disk according to lsblk"
    elif reported:
        reason = f"lsblk type '{reported}', {reason}"
    elif reported is None:
        reason = f"lsblk not available, {reason}"

    if classification is DiskClassification.PARTITION:
        return ClassificationResult(device, classification, False, reason)

    for pattern in exclude_patterns:
        if fnmatchcase(device, pattern):
            return ClassificationResult(
                device, classification, False,
                f"excluded by pattern {pattern}"
            )

    return ClassificationResult(device, classification, True, reason)


def expand_patterns(patterns: Iterable[str]) -> list[str]:
    """Expand device glob patterns in order, dropping duplicates."""
    seen: dict[str, None] = {}
    for pattern in patterns:
        for path in sorted(glob.glob(pattern)):
            seen.setdefault(path, None)
    return list(seen)


def filter_disks(
    devices: Iterable[str],
    exclude_patterns: Iterable[str] = (),
    is_block: BlockCheck = is_block_device,
    lookup_type: TypeLookup | None = lsblk_type,
) -> list[str]:
    """Keep only whole disks that are not excluded, in input order."""
    exclude_patterns = list(exclude_patterns)
    disks = []
    partitions = []
    excluded = []

    for device in devices:
        result = classify_device(
            device, exclude_patterns, is_block=is_block,
            lookup_type=lookup_type
        )
        logger.debug(f"Device {device}: {result.reason}")
        if result.included:
            disks.append(device)
        elif result.classification is DiskClassification.PARTITION:
            partitions.append(device)
        elif result.classification is DiskClassification.DISK:
            excluded.append(device)

    logger.info(
        f"Found {len(disks)} disk devices to process (partitions excluded)"
    )
    if excluded:
        logger.info(f"Excluded {len(excluded)} devices: {' '.join(excluded)}")
    if partitions:
        logger.debug(
            f"Filtered out {len(partitions)} partitions: "
            f"{' '.join(partitions)}"
        )
    return disks


def discover_devices(
    patterns: Iterable[str] = DEFAULT_DEVICE_PATTERNS,
    exclude_patterns: Iterable[str] = (),
    is_block: BlockCheck = is_block_device,
    lookup_type: TypeLookup | None = lsblk_type,
) -> list[str]:
    """Expand device patterns and return the disks to probe."""
    patterns = list(patterns)
    logger.debug(f"Scanning patterns: {' '.join(patterns)}")
    return filter_disks(
        expand_patterns(patterns), exclude_patterns,
        is_block=is_block, lookup_type=lookup_type
    )
