"""Unit tests for the SSH connection used by the remote executor."""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import asyncssh
import pytest

from smart_collector.api.connection_manager import (
    CommandTimeoutError,
    ConnectionState,
    SSHConnection,
)


@pytest.fixture
def mock_process():
    """Create a mock remote process."""
    process = MagicMock()
    process.close = MagicMock()

    result = MagicMock()
    result.exit_status = 0
    result.stdout = "{}"
    result.stderr = ""
    process.wait = AsyncMock(return_value=result)

    return process


@pytest.fixture
def mock_ssh_connection(mock_process):
    """Create a mock asyncssh connection."""
    connection = MagicMock()
    connection.create_process = AsyncMock(return_value=mock_process)
    connection.close = MagicMock()
    connection.wait_closed = AsyncMock()

    return connection


@pytest.fixture
def mock_connect(mock_ssh_connection):
    """Patch asyncssh.connect to return the mock connection."""
    with patch(
        "smart_collector.api.connection_manager.asyncssh.connect",
        new_callable=AsyncMock,
        return_value=mock_ssh_connection
    ) as connect:
        yield connect


@pytest.fixture
def connection():
    return SSHConnection(host="192.168.1.10", username="root", password="password")


class TestSSHConnection:
    """Test SSH connection handling."""

    @pytest.mark.asyncio
    async def test_connect(self, connection, mock_connect):
        await connection.connect()

        mock_connect.assert_awaited_once()
        args, kwargs = mock_connect.call_args
        assert args == ("192.168.1.10",)
        assert kwargs["username"] == "root"
        assert kwargs["password"] == "password"
        assert kwargs["port"] == 22
        assert kwargs["known_hosts"] is None
        assert connection.state == ConnectionState.ACTIVE
        assert connection.is_healthy

    @pytest.mark.asyncio
    async def test_connect_once(self, connection, mock_connect):
        await asyncio.gather(connection.connect(), connection.connect())

        mock_connect.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error, message", [
        (asyncssh.PermissionDenied("bad password"), "SSH authentication failed"),
        (asyncssh.ConnectionLost("reset"), "SSH connection lost"),
        (asyncio.TimeoutError(), "SSH connection timeout"),
        (OSError("No route to host"), "Connection failed"),
    ])
    async def test_connect_errors(self, connection, mock_connect, error, message):
        mock_connect.side_effect = error

        with pytest.raises(ConnectionError, match=message):
            await connection.connect()

        assert connection.state == ConnectionState.ERROR
        assert connection.metrics.error_count == 1
        assert not connection.is_healthy

    @pytest.mark.asyncio
    async def test_execute_connects_lazily(self, connection, mock_connect, mock_ssh_connection, mock_process):
        result = await connection.execute_command("smartctl --scan -j")

        assert result.stdout == "{}"
        mock_connect.assert_awaited_once()
        mock_ssh_connection.create_process.assert_awaited_once_with("smartctl --scan -j")
        mock_process.wait.assert_awaited_once_with(check=False)
        assert connection.metrics.command_count == 1

    @pytest.mark.asyncio
    async def test_reconnects_when_unhealthy(self, connection, mock_connect):
        await connection.connect()
        connection.state = ConnectionState.ERROR

        await connection.execute_command("smartctl --scan -j")

        assert mock_connect.await_count == 2
        assert connection.is_healthy

    @pytest.mark.asyncio
    async def test_nonzero_exit_returned(self, connection, mock_connect, mock_process):
        mock_process.wait.return_value.exit_status = 4

        result = await connection.execute_command("smartctl -a /dev/sdb -j")

        assert result.exit_status == 4

    @pytest.mark.asyncio
    async def test_execute_timeout_closes_channel(self, connection, mock_connect, mock_process):
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        mock_process.wait.side_effect = hang

        with pytest.raises(CommandTimeoutError):
            await connection.execute_command("smartctl -a /dev/sda -j", timeout=0.01)

        mock_process.close.assert_called_once()
        assert connection.metrics.error_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_command_closes_channel(self, connection, mock_connect, mock_process):
        started = asyncio.Event()

        async def hang(*args, **kwargs):
            started.set()
            await asyncio.sleep(10)

        mock_process.wait.side_effect = hang

        task = asyncio.create_task(connection.execute_command("smartctl -a /dev/sda -j"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        mock_process.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_connection_lost_during_command(self, connection, mock_connect, mock_ssh_connection):
        mock_ssh_connection.create_process.side_effect = asyncssh.ConnectionLost("gone")

        with pytest.raises(ConnectionError, match="SSH connection lost"):
            await connection.execute_command("smartctl --scan -j")

        assert connection.conn is None
        assert connection.state == ConnectionState.ERROR

    @pytest.mark.asyncio
    async def test_disconnect(self, connection, mock_connect, mock_ssh_connection):
        await connection.connect()
        await connection.disconnect()

        mock_ssh_connection.close.assert_called_once()
        mock_ssh_connection.wait_closed.assert_awaited_once()
        assert connection.conn is None
        assert connection.state == ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_without_connection(self, connection):
        await connection.disconnect()

        assert connection.state == ConnectionState.DISCONNECTED

    def test_metrics(self, connection):
        connection.metrics.command_count = 4
        connection.metrics.total_command_time = 2.0

        assert connection.metrics.avg_command_time == 0.5
        assert connection.metrics.age >= 0
