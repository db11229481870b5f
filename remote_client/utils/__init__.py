"""Utilities for remote_client."""

from remote_client.utils.address import SocketAddress, parse_address, resolve_address
from remote_client.utils.console import ColorfulFormatter, configure_logging
from remote_client.utils.shell import join_args, quote_arg

__all__ = [
    "ColorfulFormatter",
    "SocketAddress",
    "configure_logging",
    "join_args",
    "parse_address",
    "quote_arg",
    "resolve_address",
]
