"""Constants for the SMART collector."""
from datetime import timedelta
from enum import IntEnum
from typing import Final, Tuple

# smartctl
DEFAULT_SMARTCTL_PATH: Final = "smartctl"
SUPPORTED_SMARTCTL_VERSION: Final = 7.1
VERSION_CHECK_INTERVAL: Final = timedelta(hours=24)

# smartctl arguments
SCAN_ARGS: Final = "--scan -j"
SCAN_SAT_ARGS: Final = "--scan -d sat -j"
VERSION_ARGS: Final = "-j -V"
DEVICE_ARGS_TEMPLATE: Final = "-a {device} -j"

# RAID dialects probed for every RAID candidate, in probe order
RAID_DIALECTS: Final[Tuple[str, ...]] = ("3ware", "areca", "cciss", "megaraid", "sat")
SAT_DIALECT: Final = "sat"


class SmartctlExitStatus(IntEnum):
    """Exit status values embedded in smartctl JSON output."""
    SUCCESS = 0
    COMMAND_LINE_ERROR = 1
    DEVICE_OPEN_FAILED = 2
    INCOMPLETE_DATA = 4


# Executors
EXECUTOR_LOCAL = "local"
EXECUTOR_SSH = "ssh"
EXECUTORS = [EXECUTOR_LOCAL, EXECUTOR_SSH]

DEFAULT_PORT = 22
DEFAULT_USERNAME = "root"
DEFAULT_TIMEOUT = 60             # seconds
MAX_TIMEOUT = 600                # seconds
DEFAULT_MAX_SESSIONS = 8         # OpenSSH defaults MaxSessions to 10
MAX_SESSIONS_LIMIT = 64

# Configuration keys
CONF_EXECUTOR = "executor"
CONF_SMARTCTL_PATH = "smartctl_path"
CONF_USE_SUDO = "use_sudo"
CONF_TIMEOUT = "timeout"
CONF_POOL_SIZE = "pool_size"
CONF_HOST = "host"
CONF_PORT = "port"
CONF_USERNAME = "username"
CONF_PASSWORD = "password"
CONF_KNOWN_HOSTS = "known_hosts"
CONF_MAX_SESSIONS = "max_sessions"

ENV_PREFIX = "SMART_COLLECTOR_"
