"""Collect SMART telemetry from every storage device of a host."""
from __future__ import annotations

from .collector import SmartCollector
from .config import CollectorConfig, config_from_env, load_config
from .exceptions import (
    SmartCollectorError,
    SmartCollectorConfigError,
    SmartctlDecodeError,
    SmartctlExecutionError,
    SmartctlToolError,
    SmartctlVersionError,
)
from .models import DeviceInfo, DeviceRecord, SmartResults

__version__ = "1.0.0"

__all__ = [
    "SmartCollector",
    "CollectorConfig",
    "config_from_env",
    "load_config",
    "SmartCollectorError",
    "SmartCollectorConfigError",
    "SmartctlDecodeError",
    "SmartctlExecutionError",
    "SmartctlToolError",
    "SmartctlVersionError",
    "DeviceInfo",
    "DeviceRecord",
    "SmartResults",
]
