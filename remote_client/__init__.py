"""Run commands on remote hosts over a pluggable transport."""

from remote_client.client import Client
from remote_client.config import Settings
from remote_client.errors import (
    AuthenticationError,
    CommandError,
    ConfigError,
    ConnectionError,
    ErrorKind,
    RemoteError,
    SocketError,
)
from remote_client.models import Command, CommandOutput, ConnectionState, cmd
from remote_client.protocols import Config, OutputSink, Session
from remote_client.ssh import SSHConfig, SSHSession
from remote_client.utils.console import configure_logging

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "Client",
    "Command",
    "CommandError",
    "CommandOutput",
    "Config",
    "ConfigError",
    "ConnectionError",
    "ConnectionState",
    "ErrorKind",
    "OutputSink",
    "RemoteError",
    "SSHConfig",
    "SSHSession",
    "Session",
    "Settings",
    "SocketError",
    "cmd",
    "configure_logging",
]
