"""SSH session: runs commands over an authenticated connection.

Every ``exec`` opens a fresh session channel, so no channel state is
carried between commands. Output is captured per call and optionally
streamed to caller-supplied sinks as it arrives.

Inactivity timeout:
- The session holds an idle timer armed on creation
- Every channel event and the start/end of each exec reset it
- On expiry the connection is disconnected; later calls fail
"""

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

import asyncssh

from remote_client.errors import CommandError, ConnectionError, wrap_error
from remote_client.models import Command, CommandOutput, ConnectionState
from remote_client.protocols import OutputSink

if TYPE_CHECKING:
    from remote_client.utils.address import SocketAddress

logger = logging.getLogger(__name__)


def _write(sink: OutputSink, data: bytes) -> None:
    sink.write(data)
    flush = getattr(sink, "flush", None)
    if callable(flush):
        flush()


def _noop() -> None:
    return None


class _ExecChannelSession(asyncssh.SSHClientSession):
    """Collects the events of one exec channel."""

    def __init__(
        self,
        stdout: OutputSink | None = None,
        stderr: OutputSink | None = None,
        on_activity: Callable[[], None] = _noop,
    ) -> None:
        self._sinks = {None: stdout, asyncssh.EXTENDED_DATA_STDERR: stderr}
        self._buffers: dict[int | None, bytearray] = {
            None: bytearray(),
            asyncssh.EXTENDED_DATA_STDERR: bytearray(),
        }
        self._on_activity = on_activity
        self.exit_status: int | None = None
        self.exit_signal: str | None = None
        self.error: Exception | None = None
        self.sink_error: OSError | None = None

    def data_received(self, data: bytes, datatype: int | None) -> None:
        self._on_activity()
        buffer = self._buffers.get(datatype)
        if buffer is None:
            return
        buffer.extend(data)

        sink = self._sinks.get(datatype)
        if sink is None or self.sink_error is not None:
            return
        try:
            _write(sink, data)
        except OSError as e:
            self.sink_error = e

    def exit_status_received(self, status: int) -> None:
        self._on_activity()
        self.exit_status = status

    def exit_signal_received(
        self,
        signal: str,
        core_dumped: bool,
        msg: str,
        lang: str,
    ) -> None:
        self._on_activity()
        self.exit_signal = signal

    def connection_lost(self, exc: Exception | None) -> None:
        self.error = exc

    def result(self) -> CommandOutput:
        return CommandOutput(
            stdout=bytes(self._buffers[None]),
            stderr=bytes(self._buffers[asyncssh.EXTENDED_DATA_STDERR]),
            status_code=self.exit_status,
            exit_signal=self.exit_signal,
        )


class SSHSession:
    """An open, authenticated SSH connection to one remote host.

    Not safe for concurrent use: a second ``exec`` while one is running
    fails with CommandError instead of queueing.
    """

    def __init__(
        self,
        connection: asyncssh.SSHClientConnection,
        username: str = "",
        address: "SocketAddress | None" = None,
        inactivity_timeout: float | None = None,
    ) -> None:
        """Initialize session.

        Args:
            connection: Authenticated asyncssh connection
            username: Remote user, for logs
            address: Remote address, for logs
            inactivity_timeout: Seconds without traffic before the
                connection is closed, or None to keep it open. Must be
                created inside a running event loop when set.
        """
        self._conn = connection
        self.username = username
        self.address = address
        self.inactivity_timeout = inactivity_timeout
        self._state = ConnectionState.CONNECTED
        self._running = False
        self._closed_reason: str | None = None
        self._idle_handle: asyncio.TimerHandle | None = None
        self._touch()

    @property
    def state(self) -> ConnectionState:
        """Current lifecycle state."""
        return self._state

    @property
    def target(self) -> str:
        """user@address label used in logs."""
        return f"{self.username}@{self.address}" if self.address else self.username

    def _touch(self) -> None:
        """Restart the idle timer."""
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None
        if self.inactivity_timeout and self._state is ConnectionState.CONNECTED:
            loop = asyncio.get_running_loop()
            self._idle_handle = loop.call_later(self.inactivity_timeout, self._on_idle)

    def _cancel_idle_timer(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    def _on_idle(self) -> None:
        self._idle_handle = None
        if self._state is not ConnectionState.CONNECTED:
            return

        logger.info(
            "Closing idle SSH connection to %s (inactivity_timeout=%ss)",
            self.target,
            self.inactivity_timeout,
        )
        self._state = ConnectionState.ERROR
        self._closed_reason = "session closed after inactivity timeout"
        self._conn.disconnect(asyncssh.DISC_BY_APPLICATION, "Inactivity timeout")

    def _ensure_connected(self) -> None:
        if self._state is ConnectionState.DISCONNECTED:
            raise ConnectionError("session closed")
        if self._state is ConnectionState.ERROR:
            raise ConnectionError(self._closed_reason or "session closed after a connection failure")

    async def exec(
        self,
        command: Command,
        stdout: OutputSink | None = None,
        stderr: OutputSink | None = None,
    ) -> CommandOutput:
        """Execute a command on the remote host.

        Args:
            command: Command to run
            stdout: Optional sink receiving stdout chunks as they arrive
            stderr: Optional sink receiving stderr chunks as they arrive

        Returns:
            CommandOutput with captured bytes and exit status

        Raises:
            ConnectionError: If the session is closed or the link drops
            CommandError: If a command is already running, the channel is
                refused, or a sink fails
        """
        self._ensure_connected()
        if self._running:
            raise CommandError("another command is already running on this session")

        self._running = True
        self._touch()
        try:
            return await self._run(command, stdout, stderr)
        finally:
            self._running = False
            self._touch()

    async def _run(
        self,
        command: Command,
        stdout: OutputSink | None,
        stderr: OutputSink | None,
    ) -> CommandOutput:
        line = command.to_shell()
        logger.debug("Running command on %s: %s", self.target, line)

        try:
            channel, session = await self._conn.create_session(
                lambda: _ExecChannelSession(stdout, stderr, self._touch),
                line,
                encoding=None,
            )
        except asyncssh.ChannelOpenError as e:
            raise CommandError(f"Cannot open channel for '{command.name}': {e}", cause=e) from e
        except (asyncssh.Error, OSError) as e:
            self._state = ConnectionState.ERROR
            raise wrap_error(e, "Cannot start command") from e

        try:
            await channel.wait_closed()
        except asyncio.CancelledError:
            logger.warning("Command '%s' on %s cancelled, closing channel", command.name, self.target)
            channel.close()
            raise

        if self._state is ConnectionState.ERROR and self._closed_reason:
            raise ConnectionError(f"{self._closed_reason} while running '{command.name}'")

        if session.error is not None:
            self._state = ConnectionState.ERROR
            logger.error("Connection to %s lost while running '%s'", self.target, command.name)
            raise wrap_error(
                session.error, "Connection lost while running command"
            ) from session.error

        if session.sink_error is not None:
            raise CommandError(
                f"Cannot write output of '{command.name}'", cause=session.sink_error
            ) from session.sink_error

        output = session.result()
        logger.info(
            "Command '%s' completed on %s (status=%s)",
            command.name,
            self.target,
            output.status_code,
        )
        return output

    async def disconnect(self) -> None:
        """Send an application disconnect and wait for the link to close.

        Raises:
            ConnectionError: If the session is already disconnected
        """
        if self._state is ConnectionState.DISCONNECTED:
            raise ConnectionError("session already closed")

        self._cancel_idle_timer()
        logger.info("Closing SSH connection to %s", self.target)
        try:
            # The idle timer already sent its own disconnect
            if self._closed_reason is None:
                self._conn.disconnect(asyncssh.DISC_BY_APPLICATION, "Disconnected by application")
            await self._conn.wait_closed()
        except (asyncssh.Error, OSError) as e:
            raise wrap_error(e, "Disconnect failed") from e
        finally:
            self._state = ConnectionState.DISCONNECTED
