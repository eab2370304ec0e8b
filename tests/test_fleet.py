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
# nanosmart/tests/test_fleet.py

"""Tests for host-wide aggregation."""

from nanosmart import DeviceHealthRecord, Health, normalize_document
from nanosmart.fleet import records_frame, summarize_fleet


class TestFleetSummary:

    def test_counts(self, nvme_document, ata_document):
        ata_document["smart_data"]["smart_health"] = {
            "smart_status": {"passed": False}
        }
        records = [
            normalize_document(nvme_document),
            normalize_document(ata_document),
            normalize_document({}),
            DeviceHealthRecord(id="sdx", name="sdx", health=Health.CRITICAL),
        ]
        summary = summarize_fleet(records)

        assert summary.total_devices == 4
        assert summary.healthy_devices == 1
        assert summary.warning_devices == 1
        assert summary.critical_devices == 1
        assert summary.unknown_devices == 1
        assert summary.nvme_devices == 1
        assert summary.ata_devices == 1
        assert summary.failing_attributes == 1
        assert summary.max_temperature == 45
        assert summary.oldest_drive_hours == 21904
        assert summary.newest_drive_hours == 100

    def test_empty(self):
        summary = summarize_fleet([])
        assert summary.total_devices == 0
        assert summary.max_temperature is None
        assert summary.oldest_drive_hours == 0
        assert summary.newest_drive_hours == 0
        assert summary.failing_attributes == 0

    def test_records_frame(self, nvme_document):
        frame = records_frame([normalize_document(nvme_document),
                               normalize_document({})])
        assert frame.columns == [
            "device", "schema", "health", "temperature", "power_on_hours",
            "failing_attributes",
        ]
        assert frame["device"].to_list() == ["nvme0n1", "unknown"]
        assert frame["temperature"].to_list() == [45, None]

    def test_out_of_range_readings_are_missing(self, make_nvme):
        records = [
            normalize_document(make_nvme(temperature=10 ** 400,
                                         power_on_hours=10 ** 400)),
            normalize_document(make_nvme(temperature=38,
                                         power_on_hours=500)),
        ]
        summary = summarize_fleet(records)

        assert summary.total_devices == 2
        assert summary.max_temperature == 38
        assert summary.oldest_drive_hours == 500
        assert records_frame(records)["temperature"].to_list() == [None, 38]
