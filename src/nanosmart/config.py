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
# nanosmart/src/nanosmart/config.py

"""Collector settings and the smart_monitor.conf file.

The config file uses shell syntax (KEY="value" per line), so existing
smart_monitor.conf files from cron deployments keep working.
"""

import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Final

from loguru import logger

from .classifier import DEFAULT_DEVICE_PATTERNS
from .jsonio import JSON_FORMATS
from .prober import DEFAULT_TIMEOUT

DEFAULT_CONFIG_FILE: Final[str] = "smart_monitor.conf"

# config file key -> CollectorConfig field
CONFIG_KEYS: Final[dict[str, str]] = {
    "OUTPUT_DIR": "output_dir",
    "LOG_FILE": "log_file",
    "DEVICE_PATTERN": "device_patterns",
    "EXCLUDE_PATTERNS": "exclude_patterns",
    "JSON_FORMAT": "json_format",
}

_LIST_FIELDS: Final[frozenset[str]] = frozenset(
    {"device_patterns", "exclude_patterns"}
)


@dataclass(frozen=True)
class CollectorConfig:
    """Settings for one collection run."""
    output_dir: str = "output"
    log_file: str = "smart_monitor.log"  # "" disables the log file
    device_patterns: list[str] = field(
        default_factory=lambda: list(DEFAULT_DEVICE_PATTERNS)
    )
    exclude_patterns: list[str] = field(default_factory=list)
    json_format: str = "pretty"
    dry_run: bool = False
    verbose: bool = False
    timeout: float = DEFAULT_TIMEOUT  # per smartctl call, 0 waits forever

    def __post_init__(self):
        if self.json_format not in JSON_FORMATS:
            raise ValueError(
                f"Unknown JSON format: {self.json_format} "
                f"(expected one of {', '.join(JSON_FORMATS)})"
            )


def split_patterns(value: str | None) -> list[str]:
    """Space-separated glob patterns to a list."""
    return value.split() if value else []


def parse_config_text(text: str) -> dict[str, Any]:
    """Parse KEY="value" lines into CollectorConfig field values."""
    values: dict[str, Any] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        key = key.strip()
        if key not in CONFIG_KEYS:
            logger.debug(f"Ignoring unknown config key {key} on line {lineno}")
            continue
        try:
            tokens = shlex.split(raw_value, comments=True)
        except ValueError as e:
            logger.warning(f"Cannot parse config line {lineno}: {e}")
            continue
        value = " ".join(tokens)
        name = CONFIG_KEYS[key]
        values[name] = split_patterns(value) if name in _LIST_FIELDS else value
    return values


def render_config(config: CollectorConfig) -> str:
    def quoted(value: str) -> str:
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'

    return "\n".join([
        "# SMART Monitor Configuration File",
        "# Edit these values as needed",
        "",
        "# Output directory for JSON files",
        f"OUTPUT_DIR={quoted(config.output_dir)}",
        "",
        '# Log file location (set to "" to disable logging)',
        f"LOG_FILE={quoted(config.log_file)}",
        "",
        "# Device patterns to scan (space-separated)",
        f"DEVICE_PATTERN={quoted(' '.join(config.device_patterns))}",
        "",
        "# Device patterns to exclude (space-separated)",
        f"EXCLUDE_PATTERNS={quoted(' '.join(config.exclude_patterns))}",
        "",
        "# JSON format: pretty, compact, or basic",
        f"JSON_FORMAT={quoted(config.json_format)}",
        "",
    ])


def load_config_file(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    if not path.is_file():
        return {}
    return parse_config_text(path.read_text())


def save_config(config: CollectorConfig, path: str | Path) -> bool:
    """Write the persisted settings; returns False if the write failed."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_config(config))
    except OSError as e:
        logger.warning(f"Could not write configuration file {path}: {e}")
        return False
    logger.info(f"Configuration file created. Edit {path} to customize "
                f"settings.")
    return True


def load_or_create_config(
    path: str | Path = DEFAULT_CONFIG_FILE,
    overrides: dict[str, Any] | None = None,
) -> CollectorConfig:
    """Merge defaults, the config file and command-line overrides.

    Precedence is defaults < file < overrides; None overrides are ignored.
    When no config file exists yet the merged settings are written to it.

    Raises:
        ValueError: a setting has an invalid value
    """
    path = Path(path)
    existed = path.is_file()

    config = CollectorConfig()
    file_values = load_config_file(path) if existed else {}
    flag_values = {k: v for k, v in (overrides or {}).items() if v is not None}
    config = replace(config, **{**file_values, **flag_values})

    if not existed:
        logger.info(f"Creating configuration file: {path}")
        save_config(config, path)
    return config
