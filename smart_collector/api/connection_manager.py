"""SSH connection management for remote smartctl execution."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Optional

import asyncssh  # type: ignore

from .error_handling import command_preview

_LOGGER = logging.getLogger(__name__)


class SSHConnectionError(Exception):
    """Base class for SSH connection errors."""


class CommandTimeoutError(SSHConnectionError):
    """Raised when a command times out."""


class CommandError(SSHConnectionError):
    """Raised when a command fails with an error."""
    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class ConnectionState(Enum):
    """Connection state enum."""
    CONNECTING = auto()
    ACTIVE = auto()
    ERROR = auto()
    DISCONNECTING = auto()
    DISCONNECTED = auto()


@dataclass
class ConnectionMetrics:
    """Connection metrics data."""
    created_at: datetime
    last_used: datetime
    command_count: int = 0
    error_count: int = 0
    total_command_time: float = 0.0

    @property
    def age(self) -> float:
        """Get the age of the connection in seconds."""
        return (datetime.now() - self.created_at).total_seconds()

    @property
    def avg_command_time(self) -> float:
        """Get the average command execution time."""
        if self.command_count == 0:
            return 0.0
        return self.total_command_time / self.command_count


class SSHConnection:
    """A managed SSH connection shared by all workers of a collection cycle."""

    def __init__(
        self,
        host: str,
        username: str,
        password: Optional[str] = None,
        port: int = 22,
        known_hosts: Optional[str] = None,
        command_timeout: float = 60
    ) -> None:
        """Initialize the connection."""
        self.host = host
        self.username = username
        self.password = password
        self.port = port
        self.known_hosts = known_hosts

        self.conn: Optional[asyncssh.SSHClientConnection] = None
        self.state = ConnectionState.DISCONNECTED
        self.metrics = ConnectionMetrics(
            created_at=datetime.now(),
            last_used=datetime.now()
        )
        self.lock = asyncio.Lock()
        self._command_timeout = command_timeout

    async def connect(self) -> None:
        """Establish the SSH connection."""
        if self.state == ConnectionState.ACTIVE:
            return

        async with self.lock:
            if self.state == ConnectionState.ACTIVE:
                return

            self.state = ConnectionState.CONNECTING
            try:
                self.conn = await asyncssh.connect(
                    self.host,
                    username=self.username,
                    password=self.password,
                    port=self.port,
                    known_hosts=self.known_hosts,
                    keepalive_interval=30,
                    keepalive_count_max=3,
                    login_timeout=10
                )
            except asyncssh.PermissionDenied as err:
                self._mark_error()
                _LOGGER.error("SSH authentication failed for %s: %s", self.host, err)
                raise ConnectionError(f"SSH authentication failed: {err}") from err
            except asyncssh.HostKeyNotVerifiable as err:
                self._mark_error()
                _LOGGER.error("SSH host key verification failed for %s: %s", self.host, err)
                raise ConnectionError(f"SSH host key verification failed: {err}") from err
            except (asyncssh.DisconnectError, asyncssh.ConnectionLost) as err:
                self._mark_error()
                _LOGGER.error("SSH connection to %s lost: %s", self.host, err)
                raise ConnectionError(f"SSH connection lost: {err}") from err
            except asyncio.TimeoutError:
                self._mark_error()
                _LOGGER.error("SSH connection timeout for %s", self.host)
                raise ConnectionError("SSH connection timeout") from None
            except OSError as err:
                self._mark_error()
                _LOGGER.error("Connection failed to %s: %s", self.host, err)
                raise ConnectionError(f"Connection failed: {err}") from err

            self.state = ConnectionState.ACTIVE
            self.metrics.last_used = datetime.now()
            _LOGGER.debug("Connected to %s (conn_id=%s)", self.host, id(self))

    def _mark_error(self) -> None:
        self.state = ConnectionState.ERROR
        self.metrics.error_count += 1

    async def disconnect(self) -> None:
        """Disconnect the SSH connection."""
        if self.conn is None:
            self.state = ConnectionState.DISCONNECTED
            return

        async with self.lock:
            if self.conn is None:
                self.state = ConnectionState.DISCONNECTED
                return

            try:
                self.state = ConnectionState.DISCONNECTING
                self.conn.close()
                await self.conn.wait_closed()
                _LOGGER.debug("Disconnected from %s (conn_id=%s)", self.host, id(self))
            except (OSError, asyncssh.Error) as err:
                _LOGGER.debug("Error during disconnect from %s: %s", self.host, err)
            finally:
                self.conn = None
                self.state = ConnectionState.DISCONNECTED

    async def execute_command(
        self,
        command: str,
        timeout: Optional[float] = None
    ) -> asyncssh.SSHCompletedProcess:
        """Execute a command over the SSH connection.

        The remote exit status is returned, not raised: smartctl uses it as a
        bit mask.
        """
        if not self.is_healthy:
            await self.connect()

        if timeout is None:
            timeout = self._command_timeout

        start_time = time.time()
        self.metrics.last_used = datetime.now()
        self.metrics.command_count += 1
        process: Optional[asyncssh.SSHClientProcess] = None
        try:
            async with asyncio.timeout(timeout):
                process = await self.conn.create_process(command)
                return await process.wait(check=False)

        except asyncio.CancelledError:
            _close_process(process)
            raise

        except asyncio.TimeoutError:
            _close_process(process)
            self.metrics.error_count += 1
            exec_time = time.time() - start_time
            _LOGGER.debug(
                "Command timed out after %.1f seconds: %s",
                exec_time,
                command_preview(command)
            )
            raise CommandTimeoutError(
                f"Command timed out after {exec_time:.1f} seconds"
            ) from None

        except asyncssh.ProcessError as err:
            self.metrics.error_count += 1
            raise CommandError(
                f"Process error: {err}",
                exit_code=getattr(err, 'exit_status', None)
            ) from err

        except (asyncssh.ConnectionLost, asyncssh.DisconnectError) as err:
            self.metrics.error_count += 1
            self.state = ConnectionState.ERROR
            self.conn = None
            raise ConnectionError(f"SSH connection lost: {err}") from err

        finally:
            self.metrics.total_command_time += time.time() - start_time

    @property
    def is_healthy(self) -> bool:
        """Check if the connection is healthy."""
        return self.state == ConnectionState.ACTIVE and self.conn is not None


def _close_process(process: Optional[asyncssh.SSHClientProcess]) -> None:
    """Close the channel of an abandoned remote command."""
    if process is not None:
        process.close()
