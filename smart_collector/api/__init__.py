"""smartctl orchestration package."""
from .connection_manager import SSHConnection, ConnectionState, ConnectionMetrics
from .dialects import DialectPolicy, DIALECT_POLICIES, get_policy
from .enumerator import DeviceEnumerator
from .executor import (
    SmartctlExecutor,
    LocalSmartctlExecutor,
    SSHSmartctlExecutor,
    create_executor,
)
from .logging_helper import TRACE, LogManager
from .parser import parse_device_record, parse_scan, parse_version
from .runner import SmartRunner, DeviceAggregator, BasicOutcome
from .version_gate import VersionCheckState, VersionGate, evaluate_version, get_version_state

__all__ = [
    "SSHConnection",
    "ConnectionState",
    "ConnectionMetrics",
    "DialectPolicy",
    "DIALECT_POLICIES",
    "get_policy",
    "DeviceEnumerator",
    "SmartctlExecutor",
    "LocalSmartctlExecutor",
    "SSHSmartctlExecutor",
    "create_executor",
    "TRACE",
    "LogManager",
    "parse_device_record",
    "parse_scan",
    "parse_version",
    "SmartRunner",
    "DeviceAggregator",
    "BasicOutcome",
    "VersionCheckState",
    "VersionGate",
    "get_version_state",
    "evaluate_version",
]
