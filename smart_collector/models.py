"""Data models for smartctl output and collection results."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .const import SmartctlExitStatus
from .exceptions import SmartctlToolError


@dataclass
class DeviceInfo:
    """Device name and type as reported by smartctl."""
    name: str
    type: str = ""


@dataclass
class SmartctlMessage:
    """A message smartctl embedded in its output."""
    string: str
    severity: str = ""


@dataclass
class SmartctlInfo:
    """The smartctl status block of a response."""
    messages: List[SmartctlMessage] = field(default_factory=list)
    exit_status: int = 0
    version: List[int] = field(default_factory=list)

    def check_error(self) -> None:
        """Raise SmartctlToolError if smartctl reported an internal failure."""
        if self.exit_status != SmartctlExitStatus.DEVICE_OPEN_FAILED:
            return

        texts = [message.string for message in self.messages]
        raise SmartctlToolError(
            ", ".join(texts) if texts else "unknown error from smartctl",
            messages=texts,
            exit_status=self.exit_status
        )


@dataclass
class SmartStatus:
    """Overall health verdict."""
    passed: bool


@dataclass
class SmartAttribute:
    """One row of the ATA SMART attribute table."""
    id: int
    name: str
    thresh: int = 0


@dataclass
class DeviceRecord:
    """Parsed result of querying one device."""
    model_name: str = ""
    serial_number: str = ""
    rotation_rate: int = 0
    info: DeviceInfo = field(default_factory=lambda: DeviceInfo(name=""))
    smartctl: SmartctlInfo = field(default_factory=SmartctlInfo)
    smart_status: Optional[SmartStatus] = None
    attributes: List[SmartAttribute] = field(default_factory=list)

    @property
    def has_health_status(self) -> bool:
        """Return True if smartctl could produce a health verdict."""
        return self.smart_status is not None


@dataclass(frozen=True)
class RaidProbeTask:
    """One unit of RAID probing work."""
    name: str
    dialect: str


@dataclass
class SmartResults:
    """Aggregated result of one collection cycle.

    Exactly one of the containers is used: ``devices`` for parsed records or
    ``json_devices`` for raw smartctl output keyed by display name.
    """
    raw_output: bool = False
    devices: List[DeviceRecord] = field(default_factory=list)
    json_devices: Dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.json_devices) if self.raw_output else len(self.devices)
