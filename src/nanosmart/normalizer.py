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
# nanosmart/src/nanosmart/normalizer.py

"""Normalize per-device smartctl documents into one health record.

A per-device document merges five smartctl outputs. Depending on the
disk they follow the ATA convention (a keyed attribute table) or the
NVMe convention (a health information log). The shape is detected once
and every field is then read from that shape only.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Final

# ATA attribute IDs read outside the attribute table mapping
ATTR_POWER_ON_HOURS: Final[int] = 9
ATTR_AIRFLOW_TEMPERATURE: Final[int] = 190
ATTR_TEMPERATURE_CELSIUS: Final[int] = 194

BYTES_PER_GB: Final[int] = 1024 ** 3

NVME_HEALTH_CHECK: Final[str] = "NVMe Health Check"

MODEL_KEYS: Final[tuple[str, ...]] = (
    "model_name", "model_number", "Device_Model", "Model_Family",
)
SERIAL_KEYS: Final[tuple[str, ...]] = ("serial_number", "Serial_Number")
FIRMWARE_KEYS: Final[tuple[str, ...]] = (
    "firmware_version", "Firmware_Version",
)

_LEADING_INT = re.compile(r"\s*([-+]?\d+)")


class Health(str, Enum):
    GOOD = "Good"
    WARNING = "Warning"
    CRITICAL = "Critical"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class NvmeThresholds:
    """Limits used to grade the synthetic NVMe attributes."""
    temperature_max: int = 70
    percentage_used_max: int = 80
    power_on_hours_aged: int = 8760  # one year
    power_cycles_high: int = 1000


@dataclass(frozen=True)
class SmartAttribute:
    id: int | str
    name: str
    value: int
    worst: int
    threshold: int
    raw: str
    status: Health

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'value': self.value,
            'worst': self.worst,
            'threshold': self.threshold,
            'raw': self.raw,
            'status': self.status.value,
        }


@dataclass(frozen=True)
class SelfTestEntry:
    test_type: str
    status: str
    duration: str
    timestamp: datetime | None = None
    lifetime_hours: int | None = None  # used when no calendar time exists

    @property
    def when(self) -> str:
        if self.timestamp is not None:
            return self.timestamp.isoformat()
        if self.lifetime_hours is not None:
            return f"{self.lifetime_hours} lifetime hours"
        return "Unknown"

    def to_dict(self) -> dict:
        return {
            'timestamp': self.when,
            'lifetimeHours': self.lifetime_hours,
            'type': self.test_type,
            'status': self.status,
            'duration': self.duration,
        }


@dataclass(frozen=True)
class DeviceHealthRecord:
    """Canonical health record for one device."""
    id: str
    name: str
    model: str = "Unknown Model"
    serial: str = "Unknown Serial"
    firmware: str = "Unknown Firmware"
    size: str = "Unknown Size"
    device_type: str = "SATA/SCSI"
    health: Health = Health.UNKNOWN
    power_on_hours: int = 0
    temperature: int | None = None
    last_check: datetime | None = None
    schema: str = "unknown"
    smart_attributes: list[SmartAttribute] = field(default_factory=list)
    selftest_log: list[SelfTestEntry] = field(default_factory=list)

    @property
    def failing_attributes(self) -> list[SmartAttribute]:
        return [a for a in self.smart_attributes
                if a.status is not Health.GOOD]

    def to_dict(self) -> dict:
        """Convert to the camelCase shape consumed by dashboards."""
        return {
            'id': self.id,
            'name': self.name,
            'model': self.model,
            'serial': self.serial,
            'firmware': self.firmware,
            'deviceType': self.device_type,
            'size': self.size,
            'health': self.health.value,
            'powerOnHours': self.power_on_hours,
            'temperature': self.temperature,
            'lastCheck': (
                self.last_check.isoformat() if self.last_check else None
            ),
            'schema': self.schema,
            'smartAttributes': [a.to_dict() for a in self.smart_attributes],
            'selftestLog': [t.to_dict() for t in self.selftest_log],
        }


# Raw document variants. smart_data is always a dict, possibly empty.

@dataclass(frozen=True)
class AtaDocument:
    smart_data: dict
    table: list


@dataclass(frozen=True)
class NvmeDocument:
    smart_data: dict
    health_log: dict


@dataclass(frozen=True)
class UnknownDocument:
    smart_data: dict


RawSmartDocument = AtaDocument | NvmeDocument | UnknownDocument


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _parse_int(value: Any) -> int | None:
    """Lenient integer parsing: 42, 42.7, "42", "42 (Min/Max 20/50)"."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return None
        try:
            return int(match.group(1))
        except ValueError:  # beyond the interpreter's int digit limit
            return None
    if isinstance(value, dict):
        return _parse_int(value.get("value"))
    return None


def _int_or_zero(value: Any) -> int:
    parsed = _parse_int(value)
    return parsed if parsed is not None else 0


def _raw_string(raw: Any) -> str:
    if isinstance(raw, dict):
        raw = raw["value"] if raw.get("value") is not None else raw.get("string")
    if raw is None or raw == "":
        return "0"
    return str(raw)


def _label(value: Any, default: str) -> str:
    """smartctl reports enums as {"value": n, "string": "..."}."""
    if isinstance(value, dict):
        value = value.get("string")
    if value is None or value == "":
        return default
    return str(value).strip()


def _to_datetime(value: Any) -> datetime | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def _first_present(info: dict, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = info.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def classify_document(raw: Any) -> RawSmartDocument:
    """Pick the raw schema variant of a per-device document."""
    smart_data = _mapping(_mapping(raw).get("smart_data"))
    attrs = _mapping(smart_data.get("smart_attributes"))

    health_log = attrs.get("nvme_smart_health_information_log")
    if isinstance(health_log, dict):
        return NvmeDocument(smart_data, health_log)

    table = _mapping(attrs.get("ata_smart_attributes")).get("table")
    if isinstance(table, list):
        return AtaDocument(smart_data, table)

    return UnknownDocument(smart_data)


def extract_capacity(info: dict) -> str:
    """Capacity in binary GB, rounded half up, e.g. "932GB"."""
    candidates = (
        info.get("nvme_total_capacity"),
        _mapping(info.get("user_capacity")).get("bytes"),
        info.get("User_Capacity_Bytes"),
    )
    for candidate in candidates:
        size_bytes = _parse_int(candidate)
        if size_bytes:
            gigabytes = (size_bytes + BYTES_PER_GB // 2) // BYTES_PER_GB
            return f"{gigabytes}GB"
    return "Unknown Size"


def extract_device_type(info: dict, doc: RawSmartDocument) -> str:
    device = _mapping(info.get("device"))
    if device.get("type"):
        return str(device["type"]).upper()
    if device.get("protocol"):
        return str(device["protocol"])
    if isinstance(doc, NvmeDocument):
        return "NVMe"
    return "SATA/SCSI"


def extract_health(smart_data: dict) -> Health:
    """Overall verdict from the health sub-query.

    A pass/fail boolean wins over the overall_health string. Some
    captures carry smart_status at the root of smart_data instead.
    """
    status = _mapping(_mapping(smart_data.get("smart_health")).get("smart_status"))
    passed = status.get("passed")
    if isinstance(passed, bool):
        return Health.GOOD if passed else Health.WARNING

    overall = status.get("overall_health")
    if overall:
        return Health.GOOD if overall == "PASSED" else Health.WARNING

    passed = _mapping(smart_data.get("smart_status")).get("passed")
    if isinstance(passed, bool):
        return Health.GOOD if passed else Health.WARNING

    return Health.UNKNOWN


def _table_raw(table: list, attr_ids: tuple[int, ...]) -> int | None:
    for attr_id in attr_ids:
        for row in table:
            if isinstance(row, dict) and row.get("id") == attr_id:
                value = _parse_int(_mapping(row.get("raw")).get("value"))
                if value is not None:
                    return value
    return None


def extract_power_on_hours(doc: RawSmartDocument) -> int:
    attrs = _mapping(doc.smart_data.get("smart_attributes"))
    candidates = [
        _mapping(attrs.get("Power_On_Hours")).get("raw"),
        _mapping(attrs.get(str(ATTR_POWER_ON_HOURS))).get("raw"),
        _mapping(attrs.get("power_on_time")).get("hours"),
    ]
    if isinstance(doc, NvmeDocument):
        candidates.append(doc.health_log.get("power_on_hours"))
    elif isinstance(doc, AtaDocument):
        candidates.append(_table_raw(doc.table, (ATTR_POWER_ON_HOURS,)))

    for candidate in candidates:
        hours = _parse_int(candidate)
        if hours:
            return hours
    return 0


def extract_temperature(doc: RawSmartDocument) -> int | None:
    attrs = _mapping(doc.smart_data.get("smart_attributes"))
    current = _parse_int(_mapping(attrs.get("temperature")).get("current"))
    if current is not None:
        return current

    if isinstance(doc, NvmeDocument):
        return _parse_int(doc.health_log.get("temperature"))
    if isinstance(doc, AtaDocument):
        raw = _table_raw(
            doc.table, (ATTR_TEMPERATURE_CELSIUS, ATTR_AIRFLOW_TEMPERATURE)
        )
        # ATA drives encode temperature in the lower 8 bits of the raw value
        return raw & 0xFF if raw is not None else None
    return None


def _graded(attr_id: str, name: str, raw: int, good: bool,
            value_good: int = 100, value_bad: int = 0,
            threshold: int = 0, always_good: bool = False) -> SmartAttribute:
    value = value_good if good else value_bad
    return SmartAttribute(
        id=attr_id,
        name=name,
        value=value,
        worst=value,
        threshold=threshold,
        raw=str(raw),
        status=Health.GOOD if good or always_good else Health.WARNING,
    )


def nvme_attributes(health_log: dict,
                    thresholds: NvmeThresholds) -> list[SmartAttribute]:
    """The fixed set of nine attributes synthesized from an NVMe log."""
    log = {
        key: _int_or_zero(health_log.get(key))
        for key in (
            "critical_warning", "temperature", "available_spare",
            "available_spare_threshold", "percentage_used",
            "power_on_hours", "power_cycles", "media_errors",
            "num_err_log_entries", "unsafe_shutdowns",
        )
    }

    spare = log["available_spare"]
    spare_threshold = log["available_spare_threshold"]
    used = log["percentage_used"]

    return [
        _graded("critical_warning", "Critical Warning",
                log["critical_warning"], log["critical_warning"] == 0),
        _graded("temperature", "Temperature", log["temperature"],
                log["temperature"] < thresholds.temperature_max,
                value_bad=50, threshold=thresholds.temperature_max),
        SmartAttribute(
            id="available_spare",
            name="Available Spare",
            value=spare,
            worst=spare,
            threshold=spare_threshold,
            raw=str(spare),
            status=(Health.GOOD if spare > spare_threshold
                    else Health.WARNING),
        ),
        SmartAttribute(
            id="percentage_used",
            name="Percentage Used",
            value=100 - used,
            worst=100 - used,
            threshold=0,
            raw=str(used),
            status=(Health.GOOD if used < thresholds.percentage_used_max
                    else Health.WARNING),
        ),
        _graded("power_on_hours", "Power-On Hours", log["power_on_hours"],
                log["power_on_hours"] < thresholds.power_on_hours_aged,
                value_bad=85, always_good=True),
        _graded("power_cycles", "Power Cycles", log["power_cycles"],
                log["power_cycles"] < thresholds.power_cycles_high,
                value_bad=90, always_good=True),
        _graded("media_errors", "Media Errors", log["media_errors"],
                log["media_errors"] == 0),
        _graded("num_err_log_entries", "Error Log Entries",
                log["num_err_log_entries"],
                log["num_err_log_entries"] == 0, value_bad=50),
        _graded("unsafe_shutdowns", "Unsafe Shutdowns",
                log["unsafe_shutdowns"], log["unsafe_shutdowns"] == 0,
                value_bad=50),
    ]


def ata_attributes(table: list) -> list[SmartAttribute]:
    """Map smartctl's ata_smart_attributes table row by row."""
    attributes = []
    for row in table:
        if not isinstance(row, dict):
            continue
        value = _int_or_zero(row.get("value"))
        threshold = _int_or_zero(row.get("thresh"))
        attr_id = row.get("id", "")
        attributes.append(SmartAttribute(
            id=attr_id,
            name=str(row.get("name") or attr_id),
            value=value,
            worst=_int_or_zero(row.get("worst")),
            threshold=threshold,
            raw=_raw_string(row.get("raw")),
            status=Health.GOOD if value > threshold else Health.WARNING,
        ))
    return attributes


def generic_attributes(attrs: dict) -> list[SmartAttribute]:
    """Attributes stored as a mapping of arbitrary keys to rows."""
    attributes = []
    for key, attr in attrs.items():
        if not isinstance(attr, dict) or not attr.get("id"):
            continue
        value = _int_or_zero(attr.get("value"))
        threshold = _int_or_zero(
            attr["threshold"] if "threshold" in attr else attr.get("thresh")
        )
        attributes.append(SmartAttribute(
            id=attr["id"],
            name=str(attr.get("name") or key),
            value=value,
            worst=_int_or_zero(attr.get("worst")),
            threshold=threshold,
            raw=_raw_string(attr.get("raw")),
            status=Health.GOOD if value > threshold else Health.WARNING,
        ))
    return attributes


def nvme_selftest_log(health: Health,
                      last_check: datetime | None) -> list[SelfTestEntry]:
    # NVMe drives have no self-test table in this capture
    status = {
        Health.GOOD: "Completed without error",
        Health.WARNING: "Completed with warnings",
    }.get(health, "Unknown")
    return [SelfTestEntry(
        test_type=NVME_HEALTH_CHECK,
        status=status,
        duration="N/A",
        timestamp=last_check,
    )]


def ata_selftest_log(smart_data: dict,
                     last_check: datetime | None) -> list[SelfTestEntry]:
    selftest = _mapping(smart_data.get("smart_selftest"))
    log = _mapping(selftest.get("ata_smart_self_test_log"))
    table = _mapping(log.get("standard")).get("table")

    if isinstance(table, list):
        return [
            SelfTestEntry(
                test_type=_label(row.get("type"), "Unknown"),
                status=_label(row.get("status"), "Unknown"),
                duration="Unknown",
                lifetime_hours=_parse_int(row.get("lifetime_hours")),
            )
            for row in table
            if isinstance(row, dict)
        ]

    # Older captures keep one object per test under arbitrary keys
    entries = []
    for key, test in selftest.items():
        if not isinstance(test, dict):
            continue
        if "type" not in test and "status" not in test:
            continue
        entries.append(SelfTestEntry(
            test_type=_label(test.get("type"), str(key)),
            status=_label(test.get("status"), "Unknown"),
            duration=_label(test.get("duration"), "Unknown"),
            timestamp=_to_datetime(test.get("timestamp")) or last_check,
            lifetime_hours=_parse_int(test.get("lifetime_hours")),
        ))
    return entries


def normalize_document(
    raw: Any, thresholds: NvmeThresholds | None = None
) -> DeviceHealthRecord:
    """Map a per-device document onto a DeviceHealthRecord.

    Never raises. Missing or malformed input degrades to "Unknown ..."
    placeholders and empty attribute and self-test sequences.

    Args:
        raw: Parsed <device>_smart.json content (any JSON value)
        thresholds: Grading limits for synthetic NVMe attributes

    Returns:
        DeviceHealthRecord built from exactly one raw schema variant
    """
    thresholds = thresholds or NvmeThresholds()
    raw_map = _mapping(raw)
    doc = classify_document(raw_map)
    smart_data = doc.smart_data
    info = _mapping(smart_data.get("device_info"))

    device = raw_map.get("device")
    if not isinstance(device, str) or not device:
        device = "unknown"
    device_id = device.removeprefix("/dev/")

    health = extract_health(smart_data)
    last_check = _to_datetime(raw_map.get("timestamp"))

    if isinstance(doc, NvmeDocument):
        schema = "nvme"
        attributes = nvme_attributes(doc.health_log, thresholds)
        selftests = nvme_selftest_log(health, last_check)
    elif isinstance(doc, AtaDocument):
        schema = "ata"
        attributes = ata_attributes(doc.table)
        selftests = ata_selftest_log(smart_data, last_check)
    else:
        schema = "unknown"
        attributes = generic_attributes(
            _mapping(smart_data.get("smart_attributes"))
        )
        selftests = []

    return DeviceHealthRecord(
        id=device_id,
        name=device_id,
        model=_first_present(info, MODEL_KEYS) or "Unknown Model",
        serial=_first_present(info, SERIAL_KEYS) or "Unknown Serial",
        firmware=_first_present(info, FIRMWARE_KEYS) or "Unknown Firmware",
        size=extract_capacity(info),
        device_type=extract_device_type(info, doc),
        health=health,
        power_on_hours=extract_power_on_hours(doc),
        temperature=extract_temperature(doc),
        last_check=last_check,
        schema=schema,
        smart_attributes=attributes,
        selftest_log=selftests,
    )
