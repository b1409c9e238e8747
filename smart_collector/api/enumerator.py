"""Device enumeration through smartctl scans."""
from __future__ import annotations

import logging
from typing import List, Tuple

from ..const import SCAN_ARGS, SCAN_SAT_ARGS
from ..exceptions import SmartCollectorError
from ..models import DeviceInfo
from .executor import SmartctlExecutor
from .parser import parse_scan

_LOGGER = logging.getLogger(__name__)


class DeviceEnumerator:
    """Finds basic devices and RAID candidates."""

    def __init__(self, executor: SmartctlExecutor) -> None:
        self._executor = executor

    async def scan_devices(self, args: str) -> List[DeviceInfo]:
        """Run one smartctl scan and parse the device list."""
        output = await self._executor.execute(args)
        return parse_scan(output)

    async def enumerate(self) -> Tuple[List[DeviceInfo], List[DeviceInfo]]:
        """Return (basic devices, RAID candidates).

        RAID candidates are devices only the sat-hinted scan reports.
        """
        try:
            basic = await self.scan_devices(SCAN_ARGS)
        except SmartCollectorError as err:
            raise type(err)(f"Failed to scan for devices: {err}") from err

        try:
            sat_devices = await self.scan_devices(SCAN_SAT_ARGS)
        except SmartCollectorError as err:
            raise type(err)(f"Failed to scan for sat devices: {err}") from err

        basic_names = {device.name for device in basic}
        raid = [device for device in sat_devices if device.name not in basic_names]

        _LOGGER.debug(
            "Found %d basic devices and %d RAID candidates",
            len(basic),
            len(raid)
        )
        return basic, raid
