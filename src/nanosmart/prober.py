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
# nanosmart/src/nanosmart/prober.py

"""Run smartctl against one disk and capture its JSON output."""

import json
import shutil
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from loguru import logger

from .classifier import BlockCheck, is_block_device
from .errors import DeviceUnavailableError, MissingDependencyError
from .jsonio import write_json_atomic

# One smartctl invocation per facet, in the order they are stored
SUBQUERIES: Final[tuple[tuple[str, str, tuple[str, ...]], ...]] = (
    ("device_info", "device info", ("-i",)),
    ("smart_attributes", "SMART attributes", ("-A",)),
    ("smart_health", "SMART health", ("-H",)),
    ("smart_errors", "error log", ("-l", "error")),
    ("smart_selftest", "selftest log", ("-l", "selftest")),
)

# smartctl exit status is a bitmask; bit 0 is a command line error and
# bit 1 means the device could not be opened. Higher bits describe disk
# state and still come with valid JSON.
SMARTCTL_FATAL_BITS: Final[int] = 0b11

DEFAULT_TIMEOUT: Final[float] = 60.0


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str


CommandRunner = Callable[[list[str], float | None], CommandResult]


def run_command(cmd: list[str], timeout: float | None = None
                ) -> CommandResult:
    """Run a command locally and capture stdout."""
    result = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        errors="replace",
        check=False,
        timeout=timeout,
    )
    return CommandResult(result.returncode, result.stdout)


def find_smartctl() -> str | None:
    return shutil.which("smartctl")


def check_dependencies() -> str:
    """Return the smartctl path, or raise if smartmontools is missing."""
    smartctl = find_smartctl()
    if smartctl is None:
        raise MissingDependencyError(
            "smartctl not found. Please install smartmontools."
        )
    return smartctl


def output_filename(device: str) -> str:
    """Per-device output file name, e.g. /dev/sda -> sda_smart.json."""
    return f"{Path(device).name}_smart.json"


def query_smartctl(
    device: str,
    args: tuple[str, ...],
    label: str,
    smartctl: str = "smartctl",
    runner: CommandRunner = run_command,
    timeout: float | None = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    """Run one smartctl sub-query; any failure yields an empty object."""
    cmd = [smartctl, *args, "-j", device]
    try:
        result = runner(cmd, timeout)
    except subprocess.TimeoutExpired:
        logger.warning(f"Timed out reading {label} for {device}, "
                       f"using empty object")
        return {}
    except OSError as e:
        logger.warning(f"Could not run smartctl for {label} of {device}: "
                       f"{e}, using empty object")
        return {}
    except UnicodeDecodeError:
        logger.warning(f"Undecodable output from {label} for {device}, "
                       f"using empty object")
        return {}

    if result.returncode & SMARTCTL_FATAL_BITS:
        logger.warning(f"smartctl failed reading {label} for {device} "
                       f"(exit {result.returncode}), using empty object")
        return {}

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError:
        data = None
    if not isinstance(data, dict):
        logger.warning(f"Invalid JSON from {label} for {device}, "
                       f"using empty object")
        return {}
    return data


def collect_smart_data(
    device: str,
    smartctl: str = "smartctl",
    runner: CommandRunner = run_command,
    timeout: float | None = DEFAULT_TIMEOUT,
) -> dict[str, dict[str, Any]]:
    """Run all five sub-queries and merge them under their facet keys."""
    logger.debug(f"Getting SMART info for device: {device}")
    smart_data = {}
    for key, label, args in SUBQUERIES:
        smart_data[key] = query_smartctl(
            device, args, label, smartctl=smartctl, runner=runner,
            timeout=timeout
        )
    logger.debug(f"SMART info collected for device: {device}")
    return smart_data


def probe_device(
    device: str,
    output_dir: str | Path,
    json_format: str = "pretty",
    smartctl: str = "smartctl",
    runner: CommandRunner = run_command,
    is_block: BlockCheck = is_block_device,
    timeout: float | None = DEFAULT_TIMEOUT,
    now: float | None = None,
) -> Path:
    """Probe one disk and write <name>_smart.json into output_dir.

    Args:
        device: Device path (e.g., /dev/sda)
        output_dir: Directory receiving the per-device document
        json_format: pretty, compact or basic
        smartctl: Path to the smartctl executable
        runner: Command executor; accepts argv and timeout
        is_block: Predicate used to re-check the device before probing
        timeout: Per-command timeout in seconds, None to wait forever
        now: Capture time as UNIX seconds (defaults to the current time)

    Returns:
        Path of the written file

    Raises:
        DeviceUnavailableError: the device is gone or not a block device
    """
    if not is_block(device):
        raise DeviceUnavailableError(device)

    smart_data = collect_smart_data(
        device, smartctl=smartctl, runner=runner, timeout=timeout
    )
    document = {
        "device": device,
        "timestamp": int(now if now is not None else time.time()),
        "smart_data": smart_data,
    }

    output_file = Path(output_dir) / output_filename(device)
    write_json_atomic(output_file, document, json_format)
    return output_file
