"""Target address parsing and resolution."""

import asyncio
import logging
import socket
from typing import NamedTuple

from remote_client.errors import ConfigError, ConnectionError

logger = logging.getLogger(__name__)

DEFAULT_SSH_PORT = 22


class SocketAddress(NamedTuple):
    """A single resolved IP address and port."""

    host: str
    port: int

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


def validate_host(host: str) -> str:
    """Validate a host name.

    Raises:
        ConfigError: If host name is invalid
    """
    if not host:
        raise ConfigError("Host cannot be empty")

    if len(host) > 253:
        raise ConfigError(f"Host name too long: {len(host)} chars")

    suspicious_chars = ["/", "\\", ";", "&", "|", "$", "`", " ", "\n", "\r", "\x00"]
    for char in suspicious_chars:
        if char in host:
            raise ConfigError(f"Host contains invalid characters: {host!r}")

    return host


def _parse_port(value: str | int, target: object) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid port in '{target}'", cause=e) from e
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range in '{target}': {port}")
    return port


def parse_address(
    target: str | tuple[str, int],
    default_port: int = DEFAULT_SSH_PORT,
) -> tuple[str, int]:
    """Split a target into host and port.

    Formats:
        - ("host", 22)
        - "host:22", "host" (default port)
        - "[::1]:22", "::1" (bare IPv6 uses the default port)

    Raises:
        ConfigError: If the target is malformed
    """
    if isinstance(target, tuple):
        if len(target) != 2:
            raise ConfigError(f"Invalid address tuple: {target!r}")
        host, port = target
        return validate_host(str(host)), _parse_port(port, target)

    target = target.strip()

    if target.startswith("["):
        host, sep, rest = target[1:].partition("]")
        if not sep:
            raise ConfigError(f"Invalid address '{target}': missing ']'")
        if not rest:
            return validate_host(host), default_port
        if not rest.startswith(":"):
            raise ConfigError(f"Invalid address '{target}'. Expected '[host]:port'")
        return validate_host(host), _parse_port(rest[1:], target)

    # More than one colon without brackets is a bare IPv6 address
    if target.count(":") > 1:
        return validate_host(target), default_port

    host, sep, port = target.partition(":")
    if not sep:
        return validate_host(host), default_port
    return validate_host(host), _parse_port(port, target)


async def resolve_address(
    target: str | tuple[str, int],
    default_port: int = DEFAULT_SSH_PORT,
) -> SocketAddress:
    """Resolve a target to its first socket address.

    Returns:
        First address returned by the resolver

    Raises:
        ConfigError: If the target is malformed
        ConnectionError: If resolution fails or yields no address
    """
    host, port = parse_address(target, default_port)

    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        raise ConnectionError(f"Error resolving {host}:{port}: {e}", cause=e) from e

    if not infos:
        raise ConnectionError(f"Error resolving {host}:{port}: no address found")

    sockaddr = infos[0][4]
    address = SocketAddress(str(sockaddr[0]), int(sockaddr[1]))
    logger.debug("Resolved %s:%d to %s", host, port, address)
    return address
