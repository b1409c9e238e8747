"""Discovery rows built from collected SMART records."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List

from .models import DeviceRecord

_LOGGER = logging.getLogger(__name__)

DISK_TYPE_NVME = "nvme"
DISK_TYPE_SSD = "ssd"
DISK_TYPE_HDD = "hdd"


def strip_dev_prefix(name: str) -> str:
    """Remove a leading /dev/ from a device name."""
    return name[len("/dev/"):] if name.startswith("/dev/") else name


def disk_type(record: DeviceRecord) -> str:
    """Classify a device as nvme, ssd or hdd."""
    if record.info.type.lower() == DISK_TYPE_NVME:
        return DISK_TYPE_NVME
    if record.rotation_rate == 0:
        return DISK_TYPE_SSD
    return DISK_TYPE_HDD


def disk_discovery(records: Iterable[DeviceRecord]) -> List[Dict[str, str]]:
    """Return one discovery row per device."""
    return [
        {
            "{#NAME}": strip_dev_prefix(record.info.name),
            "{#DISKTYPE}": disk_type(record),
            "{#MODEL}": record.model_name,
            "{#SN}": record.serial_number,
        }
        for record in records
    ]


def attribute_discovery(records: Iterable[DeviceRecord]) -> List[Dict[str, Any]]:
    """Return one discovery row per SMART attribute of every device."""
    rows = []
    for record in records:
        name = strip_dev_prefix(record.info.name)
        kind = disk_type(record)
        for attribute in record.attributes:
            rows.append({
                "{#NAME}": name,
                "{#DISKTYPE}": kind,
                "{#ID}": attribute.id,
                "{#ATTRNAME}": attribute.name,
                "{#THRESH}": attribute.thresh,
            })
    return rows


def disk_map(json_devices: Dict[str, str]) -> Dict[str, Any]:
    """Decode raw smartctl output keyed by device name without /dev/."""
    disks = {}
    for name, output in json_devices.items():
        try:
            disks[strip_dev_prefix(name)] = json.loads(output)
        except json.JSONDecodeError as err:
            _LOGGER.warning("Skipping undecodable output for %s: %s", name, err)
    return disks
