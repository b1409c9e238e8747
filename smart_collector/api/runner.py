"""Two-pass smartctl query runner.

The basic pass queries every scanned device with a fixed pool of workers.
Devices whose data smartctl reports as incomplete, together with devices
only the sat-hinted scan found, are then probed as RAID controllers: each
RAID worker walks member disk indexes until smartctl fails.
"""
from __future__ import annotations

import asyncio
import logging
import os
from enum import Enum
from typing import List, Optional, Sequence, Set, Tuple

from ..const import DEVICE_ARGS_TEMPLATE, RAID_DIALECTS, SmartctlExitStatus
from ..exceptions import SmartCollectorError, SmartctlExecutionError, SmartctlToolError
from ..models import DeviceInfo, DeviceRecord, RaidProbeTask, SmartResults
from .dialects import get_policy
from .enumerator import DeviceEnumerator
from .executor import SmartctlExecutor
from .logging_helper import TRACE
from .parser import parse_device_record

_LOGGER = logging.getLogger(__name__)


class BasicOutcome(Enum):
    """What the aggregator did with a basic pass record."""
    ADDED = "added"
    DUPLICATE = "duplicate"
    INCOMPLETE = "incomplete"


class DeviceAggregator:
    """Collects records from all workers of both passes under one lock."""

    def __init__(self, raw_output: bool = False) -> None:
        self.results = SmartResults(raw_output=raw_output)
        self.incomplete: List[str] = []
        self._found: Set[str] = set()
        self._lock = asyncio.Lock()

    def _store(self, name: str, record: DeviceRecord, output: bytes) -> None:
        if self.results.raw_output:
            self.results.json_devices[name] = output.decode("utf-8", errors="replace")
        else:
            self.results.devices.append(record)

    async def add_basic(self, name: str, record: DeviceRecord, output: bytes) -> BasicOutcome:
        """Record a basic pass result, deduplicating by serial number."""
        async with self._lock:
            if record.serial_number in self._found:
                return BasicOutcome.DUPLICATE
            self._found.add(record.serial_number)

            if record.smartctl.exit_status == SmartctlExitStatus.INCOMPLETE_DATA:
                self.incomplete.append(name)
                return BasicOutcome.INCOMPLETE

            self._store(name, record, output)
            return BasicOutcome.ADDED

    async def add_raid(self, record: DeviceRecord, output: bytes) -> None:
        """Record a RAID member disk under its display name."""
        async with self._lock:
            self._store(record.info.name, record, output)


def default_pool_size() -> int:
    """Return the host CPU count, at least 1."""
    return max(os.cpu_count() or 1, 1)


class SmartRunner:
    """Runs one discover-then-query cycle against smartctl."""

    def __init__(
        self,
        executor: SmartctlExecutor,
        pool_size: Optional[int] = None,
        raw_output: bool = False
    ) -> None:
        self._executor = executor
        self.pool_size = max(pool_size or default_pool_size(), 1)
        self.aggregator = DeviceAggregator(raw_output)

    async def execute(self) -> SmartResults:
        """Enumerate devices and run both passes.

        Raises the first fatal basic pass error; RAID pass failures only
        shorten probing.
        """
        basic, raid = await DeviceEnumerator(self._executor).enumerate()

        _, incomplete = await self.run_basic_pass(basic)

        candidates = list(raid)
        known = {device.name for device in candidates}
        for name in incomplete:
            if name not in known:
                candidates.append(DeviceInfo(name=name))
                known.add(name)

        return await self.run_raid_pass(candidates)

    async def _query_device(self, name: str) -> Tuple[DeviceRecord, bytes]:
        """Query one device and raise on any invocation, decode or tool error."""
        try:
            output = await self._executor.execute(DEVICE_ARGS_TEMPLATE.format(device=name))
        except SmartctlExecutionError as err:
            raise SmartctlExecutionError(f"Failed to execute smartctl: {err}") from err

        record = parse_device_record(output)
        record.smartctl.check_error()
        return record, output

    # Basic pass

    async def run_basic_pass(
        self,
        devices: Sequence[DeviceInfo]
    ) -> Tuple[SmartResults, List[str]]:
        """Query all devices; return the results and the incomplete device names.

        The first fatal worker error aborts the pass and is raised; workers
        still running are cancelled.
        """
        queue: asyncio.Queue[str] = asyncio.Queue()
        for device in devices:
            queue.put_nowait(device.name)

        first_error: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        workers = [
            asyncio.create_task(self._basic_worker(queue, first_error))
            for _ in range(self.pool_size)
        ]

        try:
            pending: Set[asyncio.Future] = {*workers, first_error}
            while first_error in pending and len(pending) > 1:
                _, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for worker in workers:
                if not worker.done():
                    worker.cancel()

        if first_error.done():
            raise first_error.exception()

        for worker in workers:
            # Surface unexpected worker failures
            worker.result()

        first_error.cancel()
        _LOGGER.debug(
            "Basic pass finished: %d results, %d incomplete",
            len(self.aggregator.results),
            len(self.aggregator.incomplete)
        )
        return self.aggregator.results, list(self.aggregator.incomplete)

    @staticmethod
    def _latch(first_error: asyncio.Future, err: Exception) -> None:
        """Keep the first fatal error, drop the rest."""
        if not first_error.done():
            first_error.set_exception(err)
        else:
            _LOGGER.debug("Dropping subsequent basic pass error: %s", err)

    async def _basic_worker(self, queue: asyncio.Queue, first_error: asyncio.Future) -> None:
        while not first_error.done():
            try:
                name = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            try:
                record, output = await self._query_device(name)
            except SmartctlToolError as err:
                self._latch(first_error, SmartctlToolError(
                    f"Smartctl failed to get device data: {err}",
                    messages=err.messages,
                    exit_status=err.exit_status
                ))
                return
            except SmartCollectorError as err:
                self._latch(first_error, err)
                return

            if not record.has_health_status:
                _LOGGER.debug("No health status for %s, skipping", name)
                continue

            outcome = await self.aggregator.add_basic(name, record, output)
            _LOGGER.log(
                TRACE,
                "Device %s (serial %s): %s",
                name,
                record.serial_number,
                outcome.value
            )

    # RAID pass

    async def run_raid_pass(self, candidates: Sequence[DeviceInfo]) -> SmartResults:
        """Probe every candidate with every RAID dialect; never raises on probe failure."""
        queue: asyncio.Queue[RaidProbeTask] = asyncio.Queue()
        for device in candidates:
            for dialect in RAID_DIALECTS:
                queue.put_nowait(RaidProbeTask(device.name, dialect))

        if queue.empty():
            return self.aggregator.results

        workers = [
            asyncio.create_task(self._raid_worker(queue))
            for _ in range(self.pool_size)
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            for worker in workers:
                if not worker.done():
                    worker.cancel()

        _LOGGER.debug(
            "RAID pass finished: %d candidates, %d results in total",
            len(candidates),
            len(self.aggregator.results)
        )
        return self.aggregator.results

    async def _raid_worker(self, queue: asyncio.Queue) -> None:
        """Probe queued tasks with a worker-local member index.

        Any failure means no further member disks and ends this worker.
        """
        index = 0
        while True:
            try:
                task: RaidProbeTask = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            policy = get_policy(task.dialect)
            if index < policy.start_index:
                index = policy.start_index

            device = policy.device_argument(task.name, index)
            try:
                record, output = await self._query_device(device)
            except SmartCollectorError as err:
                _LOGGER.log(
                    TRACE,
                    "stopped looking for RAID devices of %s type, err: %s",
                    task.dialect,
                    err
                )
                return

            if record.has_health_status:
                record.info.name = policy.display_name(task.name, index)
                await self.aggregator.add_raid(record, output)
                if policy.single_shot:
                    return

            index += 1
