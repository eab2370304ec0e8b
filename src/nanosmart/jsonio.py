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
# nanosmart/src/nanosmart/jsonio.py

"""JSON rendering styles and atomic file writes."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Final

JSON_FORMATS: Final[tuple[str, ...]] = ("pretty", "compact", "basic")


def dumps(payload: Any, json_format: str = "pretty") -> str:
    """Render payload in one of the supported output styles."""
    if json_format == "pretty":
        return json.dumps(payload, indent=2) + "\n"
    elif json_format == "compact":
        return json.dumps(payload, separators=(",", ":")) + "\n"
    elif json_format == "basic":
        return json.dumps(payload) + "\n"
    else:
        raise ValueError(f"Unknown JSON format: {json_format}")


def write_json_atomic(path: str | Path, payload: Any,
                      json_format: str = "pretty") -> Path:
    """Write JSON to a temp file beside path, then rename it into place.

    Readers of the output directory never observe a partially written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = dumps(payload, json_format)

    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path
