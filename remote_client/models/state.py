"""Session lifecycle states."""

from enum import Enum


class ConnectionState(Enum):
    """Connection state of a session."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
