"""Protocol interfaces for pluggable transports.

A transport supplies two things: a Config that knows how to open a
session, and the Session it opens. The Client facade is written once
against these protocols and never touches transport details.

Usage Example:

    from remote_client.protocols import Config, Session

    class TelnetSession:
        async def exec(self, command, stdout=None, stderr=None):
            ...

        async def disconnect(self):
            ...

    class TelnetConfig:
        async def create_session(self) -> TelnetSession:
            ...

    client = await Client.connect(TelnetConfig(...))  # Works
"""

from typing import Protocol, TypeVar, runtime_checkable

from remote_client.models import Command, CommandOutput


@runtime_checkable
class OutputSink(Protocol):
    """Destination for streamed command output.

    Anything with a bytes ``write`` works, e.g. ``sys.stdout.buffer`` or
    an ``io.BytesIO``. A ``flush`` method is called after every write
    when present.
    """

    def write(self, data: bytes) -> object:
        ...


@runtime_checkable
class Session(Protocol):
    """Protocol for an open, authenticated remote execution channel.

    Implementations own their connection handle exclusively and are bound
    to a single remote host.
    """

    async def exec(
        self,
        command: Command,
        stdout: OutputSink | None = None,
        stderr: OutputSink | None = None,
    ) -> CommandOutput:
        """Run a command on the remote host.

        Args:
            command: Command to run
            stdout: Optional sink receiving stdout chunks as they arrive
            stderr: Optional sink receiving stderr chunks as they arrive

        Returns:
            Captured output and exit status

        Raises:
            ConnectionError: If the session is closed or the link drops
            CommandError: If the command cannot be started
        """
        ...

    async def disconnect(self) -> None:
        """Close the underlying connection.

        Raises:
            ConnectionError: If the session is already closed
        """
        ...


SessionT = TypeVar("SessionT", bound=Session, covariant=True)


@runtime_checkable
class Config(Protocol[SessionT]):
    """Protocol for a connection descriptor that can open a session.

    Each realization produces exactly one kind of session.
    """

    async def create_session(self) -> SessionT:
        """Connect, authenticate and return a ready session.

        Raises:
            ConfigError: If the configuration cannot be used
            ConnectionError: If the remote host cannot be reached
            AuthenticationError: If the credential is rejected
        """
        ...


__all__ = [
    "Config",
    "OutputSink",
    "Session",
    "SessionT",
]
