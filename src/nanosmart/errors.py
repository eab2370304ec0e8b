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
# nanosmart/src/nanosmart/errors.py

"""Exceptions raised by the collector and the reader."""


class NanoSmartError(Exception):
    """Base class for nanosmart errors."""


class MissingDependencyError(NanoSmartError):
    """A required external tool (smartctl) is not installed."""


class DeviceUnavailableError(NanoSmartError):
    """A device vanished or cannot be opened at probe time."""

    def __init__(self, device: str, reason: str = "not accessible"):
        super().__init__(f"Device {device} is {reason}")
        self.device = device
        self.reason = reason


class IndexUnavailableError(NanoSmartError):
    """index.json is missing or unreadable."""
