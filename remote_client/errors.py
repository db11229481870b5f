"""Error taxonomy for remote command execution.

Every failure raised by this package is a RemoteError. The five concrete
kinds mirror the stages of a session's life:

- ConfigError: malformed or unresolvable configuration
- ConnectionError: network, transport and protocol failures
- CommandError: command construction and execution failures
- AuthenticationError: credential rejected by the remote host
- SocketError: wrapped low-level error object

Lower-level exceptions are kept as ``cause`` (and chained with
``raise ... from``) so callers can tell a DNS failure from a refused
connection without parsing the message.
"""

from enum import Enum


class ErrorKind(Enum):
    """Top-level error categories."""

    CONFIG = "config"
    CONNECTION = "connection"
    COMMAND = "command"
    AUTHENTICATION = "authentication"
    SOCKET = "socket"


class RemoteError(Exception):
    """Base class for all remote client errors."""

    kind: ErrorKind
    prefix: str = "Remote error"

    def __init__(self, message: str, cause: BaseException | None = None):
        """Initialize remote error.

        Args:
            message: Human-readable description
            cause: Lower-level exception that triggered this error, if any
        """
        self.message = message
        self.cause = cause
        super().__init__(f"{self.prefix}: {message}")
        if cause is not None:
            self.__cause__ = cause


class ConfigError(RemoteError):
    """Configuration is malformed or cannot be used."""

    kind = ErrorKind.CONFIG
    prefix = "Config error"


class ConnectionError(RemoteError):  # noqa: A001
    """Connection could not be established, or was lost."""

    kind = ErrorKind.CONNECTION
    prefix = "Connection error"


class CommandError(RemoteError):
    """Command could not be built or executed."""

    kind = ErrorKind.COMMAND
    prefix = "Command error"


class AuthenticationError(RemoteError):
    """Remote host rejected the supplied credential."""

    kind = ErrorKind.AUTHENTICATION
    prefix = "Authentication error"


class SocketError(RemoteError):
    """Opaque low-level error wrapped as-is."""

    kind = ErrorKind.SOCKET
    prefix = "Socket Error"

    def __init__(self, cause: BaseException, message: str | None = None):
        super().__init__(message or str(cause), cause=cause)


def wrap_error(exc: BaseException, message: str | None = None) -> RemoteError:
    """Coerce any exception into the taxonomy.

    RemoteError instances pass through unchanged. Everything else becomes
    a ConnectionError that keeps the original exception as its cause.

    Args:
        exc: Exception raised by the transport, key loader or OS
        message: Optional context to prepend to the original message

    Returns:
        RemoteError to raise in place of ``exc``
    """
    if isinstance(exc, RemoteError):
        return exc

    detail = str(exc) or type(exc).__name__
    if message:
        detail = f"{message}: {detail}"
    return ConnectionError(detail, cause=exc)


__all__ = [
    "AuthenticationError",
    "CommandError",
    "ConfigError",
    "ConnectionError",
    "ErrorKind",
    "RemoteError",
    "SocketError",
    "wrap_error",
]
