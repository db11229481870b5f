"""Data models for remote_client."""

from remote_client.models.command import Command, CommandOutput, cmd
from remote_client.models.state import ConnectionState

__all__ = [
    "Command",
    "CommandOutput",
    "ConnectionState",
    "cmd",
]
