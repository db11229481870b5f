"""Tests for transport protocol interfaces.

Verifies that concrete implementations satisfy protocol contracts.
"""

import io
from typing import Protocol
from unittest.mock import MagicMock

from remote_client.protocols import Config, OutputSink, Session
from remote_client.ssh import SSHPasswordConfig, SSHSession
from remote_client.ssh.host_keys import AcceptAnyHostKeyPolicy
from remote_client.utils.address import SocketAddress


def test_protocols_are_runtime_checkable() -> None:
    """Protocols can be used with isinstance()."""
    assert issubclass(Session, Protocol)
    assert issubclass(Config, Protocol)
    assert isinstance(MagicMock(spec=SSHSession), Session)


def test_ssh_session_implements_session() -> None:
    """SSHSession satisfies the Session protocol."""
    session = SSHSession(MagicMock(), username="root")
    assert isinstance(session, Session)


def test_ssh_config_implements_config() -> None:
    """SSH configs satisfy the Config protocol."""
    config = SSHPasswordConfig(
        username="root",
        address=SocketAddress("127.0.0.1", 22),
        inactivity_timeout=10,
        host_key_policy=AcceptAnyHostKeyPolicy(),
        password="secret",
    )
    assert isinstance(config, Config)


def test_byte_streams_are_output_sinks() -> None:
    """Binary streams can receive command output."""
    assert isinstance(io.BytesIO(), OutputSink)


def test_custom_transport_satisfies_protocols() -> None:
    """Any class with the two operations is a transport."""

    class TelnetSession:
        async def exec(self, command, stdout=None, stderr=None):
            return None

        async def disconnect(self):
            return None

    class TelnetConfig:
        async def create_session(self):
            return TelnetSession()

    assert isinstance(TelnetSession(), Session)
    assert isinstance(TelnetConfig(), Config)
    assert not isinstance(object(), Session)
