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
# nanosmart/tests/conftest.py

import json

import pytest
from loguru import logger

from nanosmart.prober import CommandResult

# Captured at 2025-06-12 10:30:45 UTC
CAPTURE_TIME = 1749724245

# Temperature_Celsius raw value: lower byte 33, min/max packed above it
ATA_TEMPERATURE_RAW = 184684904481


def make_nvme_document(**health_log) -> dict:
    log = {
        "critical_warning": 0,
        "temperature": 45,
        "available_spare": 100,
        "available_spare_threshold": 10,
        "percentage_used": 5,
        "power_on_hours": 100,
        "power_cycles": 10,
        "media_errors": 0,
        "num_err_log_entries": 0,
        "unsafe_shutdowns": 0,
    }
    log.update(health_log)
    return {
        "device": "/dev/nvme0n1",
        "timestamp": CAPTURE_TIME,
        "smart_data": {
            "device_info": {
                "model_name": "Samsung SSD 970 EVO Plus 500GB",
                "serial_number": "S4EVNX0N123456",
                "firmware_version": "2B2QEXM7",
                "nvme_total_capacity": 500107862016,
                "device": {"name": "/dev/nvme0n1", "protocol": "NVMe"},
            },
            "smart_attributes": {
                "nvme_smart_health_information_log": log,
            },
            "smart_health": {"smart_status": {"passed": True}},
            "smart_errors": {},
            "smart_selftest": {},
        },
    }


def make_ata_document() -> dict:
    return {
        "device": "/dev/sda",
        "timestamp": CAPTURE_TIME,
        "smart_data": {
            "device_info": {
                "model_name": "WDC WD40EFRX-68N32N0",
                "serial_number": "WD-WCC7K1234567",
                "firmware_version": "82.00A82",
                "user_capacity": {"blocks": 7814037168,
                                  "bytes": 4000787030016},
                "device": {"name": "/dev/sda", "info_name": "/dev/sda [SAT]",
                           "type": "sat", "protocol": "ATA"},
            },
            "smart_attributes": {
                "ata_smart_attributes": {
                    "revision": 16,
                    "table": [
                        {"id": 5, "name": "Reallocated_Sector_Ct",
                         "value": 90, "worst": 90, "thresh": 10,
                         "raw": {"value": 3, "string": "3"}},
                        {"id": 9, "name": "Power_On_Hours",
                         "value": 75, "worst": 75, "thresh": 0,
                         "raw": {"value": 21904, "string": "21904"}},
                        {"id": 194, "name": "Temperature_Celsius",
                         "value": 117, "worst": 100, "thresh": 0,
                         "raw": {"value": ATA_TEMPERATURE_RAW,
                                 "string": "33 (Min/Max 20/43)"}},
                        {"id": 197, "name": "Current_Pending_Sector",
                         "value": 100, "worst": 100, "thresh": 0,
                         "raw": {"value": 0, "string": "0"}},
                        {"id": 3, "name": "Spin_Up_Time",
                         "value": 1, "worst": 1, "thresh": 21,
                         "raw": {"value": 0, "string": "0"}},
                    ],
                },
            },
            "smart_health": {"smart_status": {"passed": True}},
            "smart_errors": {"ata_smart_error_log": {"summary": {"count": 0}}},
            "smart_selftest": {
                "ata_smart_self_test_log": {
                    "standard": {
                        "revision": 1,
                        "table": [
                            {"type": {"value": 1, "string": "Short offline"},
                             "status": {"value": 0, "passed": True,
                                        "string": "Completed without error"},
                             "lifetime_hours": 21900},
                            {"type": {"value": 2,
                                      "string": "Extended offline"},
                             "status": {"value": 0, "passed": True,
                                        "string": "Completed without error"},
                             "lifetime_hours": 21000},
                        ],
                    },
                },
            },
        },
    }


class FakeSmartctl:
    """Stands in for run_command; answers by smartctl sub-query."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def __call__(self, cmd, timeout):
        self.calls.append(cmd)
        # cmd is [smartctl, *args, "-j", device]
        key = " ".join(cmd[1:-2])
        response = self.responses.get(key)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return CommandResult(0, json.dumps({"queried": key}))
        return response

    @property
    def devices(self):
        return [cmd[-1] for cmd in self.calls]


@pytest.fixture
def nvme_document():
    return make_nvme_document()


@pytest.fixture
def make_nvme():
    """Factory for NVMe documents with selected health log overrides."""
    return make_nvme_document


@pytest.fixture
def ata_document():
    return make_ata_document()


@pytest.fixture
def smartctl():
    """Factory for fake smartctl runners with canned responses."""
    return FakeSmartctl


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop sinks added by CLI runs so they don't outlive the test."""
    yield
    logger.remove()
