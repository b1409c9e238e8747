"""Configuration for the SMART collector."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import voluptuous as vol  # type: ignore

from .const import (
    CONF_EXECUTOR,
    CONF_HOST,
    CONF_KNOWN_HOSTS,
    CONF_MAX_SESSIONS,
    CONF_PASSWORD,
    CONF_POOL_SIZE,
    CONF_PORT,
    CONF_SMARTCTL_PATH,
    CONF_TIMEOUT,
    CONF_USE_SUDO,
    CONF_USERNAME,
    DEFAULT_MAX_SESSIONS,
    DEFAULT_PORT,
    DEFAULT_SMARTCTL_PATH,
    DEFAULT_TIMEOUT,
    DEFAULT_USERNAME,
    ENV_PREFIX,
    EXECUTOR_LOCAL,
    EXECUTOR_SSH,
    EXECUTORS,
    MAX_SESSIONS_LIMIT,
    MAX_TIMEOUT,
)
from .exceptions import SmartCollectorConfigError

_LOGGER = logging.getLogger(__name__)


def _boolean(value: Any) -> bool:
    """Accept booleans and the usual string spellings from the environment."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off", ""):
            return False
    raise vol.Invalid(f"invalid boolean value {value!r}")


def _require_host_for_ssh(config: dict) -> dict:
    if config[CONF_EXECUTOR] == EXECUTOR_SSH and not config.get(CONF_HOST):
        raise vol.Invalid("host is required for the ssh executor", path=[CONF_HOST])
    return config


CONFIG_SCHEMA = vol.Schema(
    vol.All(
        {
            vol.Optional(CONF_EXECUTOR, default=EXECUTOR_LOCAL): vol.In(EXECUTORS),
            vol.Optional(CONF_SMARTCTL_PATH, default=DEFAULT_SMARTCTL_PATH): vol.All(str, vol.Length(min=1)),
            vol.Optional(CONF_USE_SUDO, default=False): _boolean,
            vol.Optional(CONF_TIMEOUT, default=DEFAULT_TIMEOUT): vol.All(
                vol.Coerce(float), vol.Range(min=1, max=MAX_TIMEOUT)
            ),
            vol.Optional(CONF_POOL_SIZE): vol.Any(None, vol.All(vol.Coerce(int), vol.Range(min=1))),
            vol.Optional(CONF_HOST): str,
            vol.Optional(CONF_PORT, default=DEFAULT_PORT): vol.All(
                vol.Coerce(int), vol.Range(min=1, max=65535)
            ),
            vol.Optional(CONF_USERNAME, default=DEFAULT_USERNAME): str,
            vol.Optional(CONF_PASSWORD): vol.Any(None, str),
            vol.Optional(CONF_KNOWN_HOSTS): vol.Any(None, str),
            vol.Optional(CONF_MAX_SESSIONS, default=DEFAULT_MAX_SESSIONS): vol.All(
                vol.Coerce(int), vol.Range(min=1, max=MAX_SESSIONS_LIMIT)
            ),
        },
        _require_host_for_ssh,
    )
)


@dataclass(frozen=True)
class CollectorConfig:
    """Validated collector settings."""
    executor: str = EXECUTOR_LOCAL
    smartctl_path: str = DEFAULT_SMARTCTL_PATH
    use_sudo: bool = False
    timeout: float = DEFAULT_TIMEOUT
    pool_size: Optional[int] = None
    host: Optional[str] = None
    port: int = DEFAULT_PORT
    username: str = DEFAULT_USERNAME
    password: Optional[str] = None
    known_hosts: Optional[str] = None
    max_sessions: int = DEFAULT_MAX_SESSIONS

    @property
    def is_remote(self) -> bool:
        return self.executor == EXECUTOR_SSH

    @property
    def workers(self) -> int:
        """Number of workers per pool: configured, else host CPU count."""
        if self.pool_size:
            return self.pool_size
        return max(os.cpu_count() or 1, 1)


def load_config(data: Optional[Mapping[str, Any]] = None) -> CollectorConfig:
    """Validate a configuration mapping and return a CollectorConfig."""
    try:
        validated = CONFIG_SCHEMA(dict(data or {}))
    except vol.Invalid as err:
        field = ".".join(str(part) for part in err.path) or "config"
        raise SmartCollectorConfigError(f"Invalid {field}: {err.msg}") from err

    config = CollectorConfig(**validated)
    _LOGGER.debug(
        "Loaded configuration: executor=%s, smartctl=%s, workers=%d",
        config.executor,
        config.smartctl_path,
        config.workers
    )
    return config


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> CollectorConfig:
    """Build a configuration from SMART_COLLECTOR_* environment variables."""
    if environ is None:
        environ = os.environ

    data = {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in environ.items()
        if key.startswith(ENV_PREFIX) and value != ""
    }
    return load_config(data)
