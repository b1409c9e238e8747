"""smartctl command execution."""
from __future__ import annotations

import asyncio
import logging
import shlex
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

import asyncssh  # type: ignore

from ..const import DEFAULT_MAX_SESSIONS, DEFAULT_SMARTCTL_PATH, DEFAULT_TIMEOUT
from ..exceptions import SmartctlExecutionError
from .connection_manager import CommandError, CommandTimeoutError, SSHConnection
from .error_handling import command_preview
from .logging_helper import TRACE

if TYPE_CHECKING:
    from ..config import CollectorConfig

_LOGGER = logging.getLogger(__name__)


class SmartctlExecutor(ABC):
    """Runs smartctl and returns its raw output.

    A non-zero smartctl exit code is not an error on its own: smartctl
    reports its status as a bit mask that is also embedded in the JSON
    output. Only a missing binary, a timeout, a broken transport or a
    failure without any output raise SmartctlExecutionError.
    """

    def __init__(
        self,
        smartctl_path: str = DEFAULT_SMARTCTL_PATH,
        use_sudo: bool = False,
        timeout: float = DEFAULT_TIMEOUT
    ) -> None:
        self.smartctl_path = smartctl_path
        self.use_sudo = use_sudo
        self.timeout = timeout

    def build_command(self, args: str) -> List[str]:
        """Return the argv for running smartctl with the given arguments."""
        command = ["sudo", "-n"] if self.use_sudo else []
        command.append(self.smartctl_path)
        command.extend(shlex.split(args))
        return command

    async def execute(self, args: str, suppress_error_log: bool = False) -> bytes:
        """Run smartctl with args and return its standard output."""
        command = self.build_command(args)
        _LOGGER.log(TRACE, "Executing smartctl: %s", shlex.join(command))
        try:
            return await self._run(command)
        except SmartctlExecutionError as err:
            _LOGGER.log(
                logging.DEBUG if suppress_error_log else logging.ERROR,
                "smartctl %s failed: %s",
                command_preview(args),
                err
            )
            raise

    @abstractmethod
    async def _run(self, command: List[str]) -> bytes:
        """Run the command and return its output."""

    async def close(self) -> None:
        """Release transport resources."""


class LocalSmartctlExecutor(SmartctlExecutor):
    """Runs smartctl on this host."""

    async def _run(self, command: List[str]) -> bytes:
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as err:
            raise SmartctlExecutionError(f"cannot run {command[0]}: {err}") from err

        try:
            async with asyncio.timeout(self.timeout):
                stdout, stderr = await process.communicate()
        except TimeoutError:
            await self._reap(process)
            raise SmartctlExecutionError(
                f"command timed out after {self.timeout} seconds"
            ) from None
        except asyncio.CancelledError:
            await self._reap(process)
            raise

        if process.returncode != 0 and not stdout:
            raise SmartctlExecutionError(
                f"exit code {process.returncode}: "
                f"{stderr.decode(errors='replace').strip() or 'no output'}"
            )
        return stdout

    @staticmethod
    async def _reap(process: asyncio.subprocess.Process) -> None:
        """Kill an abandoned smartctl and wait for it to exit."""
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()


class SSHSmartctlExecutor(SmartctlExecutor):
    """Runs smartctl on a remote host over SSH."""

    def __init__(
        self,
        connection: SSHConnection,
        smartctl_path: str = DEFAULT_SMARTCTL_PATH,
        use_sudo: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        max_sessions: int = DEFAULT_MAX_SESSIONS
    ) -> None:
        super().__init__(smartctl_path, use_sudo, timeout)
        self.connection = connection
        # Each command opens a channel; sshd caps channels per connection
        self._sessions = asyncio.Semaphore(max_sessions)

    async def _run(self, command: List[str]) -> bytes:
        async with self._sessions:
            try:
                result = await self.connection.execute_command(
                    shlex.join(command),
                    timeout=self.timeout
                )
            except CommandTimeoutError as err:
                raise SmartctlExecutionError(str(err)) from err
            except (CommandError, ConnectionError, asyncssh.Error) as err:
                raise SmartctlExecutionError(
                    f"{self.connection.host}: {err}"
                ) from err

        stdout = result.stdout or ""
        if isinstance(stdout, str):
            stdout = stdout.encode()
        if result.exit_status not in (0, None) and not stdout:
            stderr = result.stderr or ""
            if isinstance(stderr, bytes):
                stderr = stderr.decode(errors="replace")
            raise SmartctlExecutionError(
                f"exit code {result.exit_status}: {stderr.strip() or 'no output'}"
            )
        return stdout

    async def close(self) -> None:
        metrics = self.connection.metrics
        _LOGGER.debug(
            "Closing SSH connection to %s after %.0fs: %d commands, %d errors, %.2fs average",
            self.connection.host,
            metrics.age,
            metrics.command_count,
            metrics.error_count,
            metrics.avg_command_time
        )
        await self.connection.disconnect()


def create_executor(config: CollectorConfig) -> SmartctlExecutor:
    """Build the executor described by a CollectorConfig."""
    if config.is_remote:
        connection = SSHConnection(
            host=config.host,
            username=config.username,
            password=config.password,
            port=config.port,
            known_hosts=config.known_hosts,
            command_timeout=config.timeout
        )
        return SSHSmartctlExecutor(
            connection,
            smartctl_path=config.smartctl_path,
            use_sudo=config.use_sudo,
            timeout=config.timeout,
            max_sessions=config.max_sessions
        )

    return LocalSmartctlExecutor(
        smartctl_path=config.smartctl_path,
        use_sudo=config.use_sudo,
        timeout=config.timeout
    )
