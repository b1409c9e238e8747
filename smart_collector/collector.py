"""SMART collector facade."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .api.executor import SmartctlExecutor, create_executor
from .api.logging_helper import get_log_manager
from .api.runner import SmartRunner
from .api.version_gate import VersionGate
from .config import CollectorConfig
from .discovery import attribute_discovery, disk_discovery, disk_map
from .models import SmartResults

_LOGGER = logging.getLogger(__name__)


class SmartCollector:
    """Collects SMART telemetry for every storage device of one host."""

    def __init__(
        self,
        config: Optional[CollectorConfig] = None,
        executor: Optional[SmartctlExecutor] = None,
        version_gate: Optional[VersionGate] = None
    ) -> None:
        """Initialize the collector."""
        self.config = config or CollectorConfig()
        self.executor = executor or create_executor(self.config)
        self.version_gate = version_gate or VersionGate(self.executor)
        get_log_manager().configure()

    async def __aenter__(self) -> "SmartCollector":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the executor transport."""
        await self.executor.close()

    async def collect(self, raw_output: bool = False) -> SmartResults:
        """Run one collection cycle.

        With raw_output the results hold smartctl's JSON text keyed by
        device name, otherwise parsed records.
        """
        await self.version_gate.ensure_version()

        runner = SmartRunner(
            self.executor,
            pool_size=self.config.workers,
            raw_output=raw_output
        )
        results = await runner.execute()
        _LOGGER.debug("Collected SMART data for %d devices", len(results))
        return results

    async def get_disks(self) -> Dict[str, Any]:
        """Return decoded smartctl output for every device."""
        results = await self.collect(raw_output=True)
        return disk_map(results.json_devices)

    async def discover_disks(self) -> List[Dict[str, str]]:
        """Return disk discovery rows."""
        results = await self.collect()
        return disk_discovery(results.devices)

    async def discover_attributes(self) -> List[Dict[str, Any]]:
        """Return attribute discovery rows."""
        results = await self.collect()
        return attribute_discovery(results.devices)
