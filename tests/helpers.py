"""Canned smartctl output and a fake executor for tests."""
import asyncio
import json
import random
from typing import Any, Dict, List, Optional, Union


from smart_collector.api.executor import SmartctlExecutor
from smart_collector.exceptions import SmartctlExecutionError


def device_json(
    name: str,
    serial: str,
    exit_status: int = 0,
    smart_status: Optional[bool] = True,
    model: str = "TEST MODEL",
    rotation_rate: int = 7200,
    dev_type: str = "sat",
    messages: Optional[List[str]] = None,
    attributes: Optional[List[Dict[str, Any]]] = None,
) -> bytes:
    """Build smartctl -a -j output for one device."""
    data: Dict[str, Any] = {
        "smartctl": {
            "version": [7, 2],
            "exit_status": exit_status,
            "messages": [{"string": m, "severity": "error"} for m in (messages or [])],
        },
        "device": {"name": name, "type": dev_type},
        "model_name": model,
        "serial_number": serial,
        "rotation_rate": rotation_rate,
        "ata_smart_attributes": {"table": attributes or []},
    }
    if smart_status is not None:
        data["smart_status"] = {"passed": smart_status}
    return json.dumps(data).encode()


def scan_json(*names: str) -> bytes:
    """Build smartctl --scan -j output."""
    return json.dumps({
        "devices": [{"name": n, "type": "sat"} for n in names]
    }).encode()


def failed_json(*messages: str) -> bytes:
    """Build smartctl output for a device that could not be opened."""
    return json.dumps({
        "smartctl": {
            "version": [7, 2],
            "exit_status": 2,
            "messages": [{"string": m} for m in messages],
        }
    }).encode()


def version_json(*digits: int) -> bytes:
    return json.dumps({"smartctl": {"version": list(digits), "exit_status": 0}}).encode()


class FakeExecutor(SmartctlExecutor):
    """Executor answering smartctl argument strings from a table.

    Unknown arguments answer with a "device open failed" response, the way
    smartctl answers a RAID member index that does not exist.
    """

    def __init__(
        self,
        responses: Optional[Dict[str, Union[bytes, Exception]]] = None,
        max_delay: float = 0.0,
        seed: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.responses = dict(responses or {})
        self.calls: List[str] = []
        self.max_delay = max_delay
        self._random = random.Random(seed)

    async def execute(self, args: str, suppress_error_log: bool = False) -> bytes:
        self.calls.append(args)
        # Always yield so every worker of a pool gets to dequeue
        await asyncio.sleep(self._random.uniform(0, self.max_delay) if self.max_delay else 0)
        response = self.responses.get(args, failed_json("No such device"))
        if isinstance(response, Exception):
            raise response
        return response

    async def _run(self, command):  # pragma: no cover - execute is overridden
        raise SmartctlExecutionError("not used")

    def calls_for(self, fragment: str) -> List[str]:
        return [call for call in self.calls if fragment in call]


