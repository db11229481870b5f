"""Transport-agnostic client facade.

The Client owns exactly one Session and forwards calls to it unchanged.

Example:
    config = await SSHConfig.password("root", "192.168.1.1:22", "secret")
    async with await Client.connect(config) as client:
        output = await client.exec(cmd("ls", "-la"))
        print(output.stdout_text)
"""

import logging
from types import TracebackType
from typing import Generic

from remote_client.errors import ConnectionError
from remote_client.models import Command, CommandOutput
from remote_client.protocols import Config, OutputSink, SessionT

logger = logging.getLogger(__name__)


class Client(Generic[SessionT]):
    """Client bound to a single remote session."""

    def __init__(self, session: SessionT) -> None:
        self._session: SessionT | None = session

    @classmethod
    async def connect(cls, config: Config[SessionT]) -> "Client[SessionT]":
        """Open a session from config and wrap it.

        Single attempt: errors from ``create_session`` propagate untouched.
        """
        session = await config.create_session()
        logger.debug("Client connected (session=%s)", type(session).__name__)
        return cls(session)

    @property
    def session(self) -> SessionT:
        """The owned session.

        Raises:
            ConnectionError: If the client has been disconnected
        """
        if self._session is None:
            raise ConnectionError("session closed")
        return self._session

    @property
    def is_connected(self) -> bool:
        """Whether the client still owns a session."""
        return self._session is not None

    async def exec(
        self,
        command: Command,
        stdout: OutputSink | None = None,
        stderr: OutputSink | None = None,
    ) -> CommandOutput:
        """Run a command through the owned session."""
        return await self.session.exec(command, stdout=stdout, stderr=stderr)

    async def disconnect(self) -> None:
        """Disconnect the owned session. The client is unusable afterwards."""
        session = self.session
        self._session = None
        await session.disconnect()

    async def __aenter__(self) -> "Client[SessionT]":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self.is_connected:
            await self.disconnect()
