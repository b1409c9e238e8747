"""smartctl JSON output parsing."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from ..exceptions import SmartctlDecodeError
from ..models import (
    DeviceInfo,
    DeviceRecord,
    SmartAttribute,
    SmartctlInfo,
    SmartctlMessage,
    SmartStatus,
)
from .error_handling import safe_parse

_LOGGER = logging.getLogger(__name__)

T = TypeVar('T')

RawOutput = Union[bytes, str]


def _load_object(raw: RawOutput) -> Dict[str, Any]:
    """Decode raw output into a JSON object."""
    data = safe_parse(json.loads, raw, error_msg="Cannot unmarshal JSON")
    if not isinstance(data, dict):
        raise SmartctlDecodeError(
            f"Cannot unmarshal JSON: expected object, got {type(data).__name__}"
        )
    return data


def _field(data: Dict[str, Any], key: str, kind: Type[T], default: T) -> T:
    """Return a typed field, treating missing and null values as the default."""
    value = data.get(key)
    if value is None:
        return default
    if kind is int and isinstance(value, bool):
        raise SmartctlDecodeError(f"Cannot unmarshal JSON: field '{key}' is not {kind.__name__}")
    if not isinstance(value, kind):
        raise SmartctlDecodeError(f"Cannot unmarshal JSON: field '{key}' is not {kind.__name__}")
    return value


def _device_info(data: Dict[str, Any]) -> DeviceInfo:
    return DeviceInfo(
        name=_field(data, "name", str, ""),
        type=_field(data, "type", str, ""),
    )


def _smartctl_info(data: Dict[str, Any]) -> SmartctlInfo:
    messages = []
    for message in _field(data, "messages", list, []):
        if not isinstance(message, dict):
            raise SmartctlDecodeError("Cannot unmarshal JSON: malformed smartctl message")
        messages.append(SmartctlMessage(
            string=_field(message, "string", str, ""),
            severity=_field(message, "severity", str, ""),
        ))

    version = _field(data, "version", list, [])
    if not all(isinstance(digit, int) and not isinstance(digit, bool) for digit in version):
        raise SmartctlDecodeError("Cannot unmarshal JSON: smartctl version is not a list of integers")

    return SmartctlInfo(
        messages=messages,
        exit_status=_field(data, "exit_status", int, 0),
        version=list(version),
    )


def _smart_status(data: Dict[str, Any]) -> Optional[SmartStatus]:
    status = data.get("smart_status")
    if status is None:
        return None
    if not isinstance(status, dict):
        raise SmartctlDecodeError("Cannot unmarshal JSON: field 'smart_status' is not an object")
    return SmartStatus(passed=bool(status.get("passed", False)))


def _attributes(data: Dict[str, Any]) -> List[SmartAttribute]:
    block = _field(data, "ata_smart_attributes", dict, {})
    rows = []
    for row in _field(block, "table", list, []):
        if not isinstance(row, dict):
            raise SmartctlDecodeError("Cannot unmarshal JSON: malformed attribute row")
        rows.append(SmartAttribute(
            id=_field(row, "id", int, 0),
            name=_field(row, "name", str, ""),
            thresh=_field(row, "thresh", int, 0),
        ))
    return rows


def parse_device_record(raw: RawOutput) -> DeviceRecord:
    """Parse the output of ``smartctl -a <device> -j``."""
    data = _load_object(raw)
    return DeviceRecord(
        model_name=_field(data, "model_name", str, ""),
        serial_number=_field(data, "serial_number", str, ""),
        rotation_rate=_field(data, "rotation_rate", int, 0),
        info=_device_info(_field(data, "device", dict, {})),
        smartctl=_smartctl_info(_field(data, "smartctl", dict, {})),
        smart_status=_smart_status(data),
        attributes=_attributes(data),
    )


def parse_scan(raw: RawOutput) -> List[DeviceInfo]:
    """Parse the output of ``smartctl --scan -j``."""
    data = _load_object(raw)
    devices = []
    for entry in _field(data, "devices", list, []):
        if not isinstance(entry, dict):
            raise SmartctlDecodeError("Cannot unmarshal JSON: malformed scan entry")
        devices.append(_device_info(entry))

    _LOGGER.debug("Scan reported %d devices", len(devices))
    return devices


def parse_version(raw: RawOutput) -> List[int]:
    """Parse the version digits out of ``smartctl -j -V``."""
    data = _load_object(raw)
    return _smartctl_info(_field(data, "smartctl", dict, {})).version
