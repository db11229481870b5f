"""Shell command rendering utilities."""

import shlex
from collections.abc import Iterable


def quote_arg(arg: str) -> str:
    """Safely quote a shell argument.

    Args:
        arg: Argument to quote

    Returns:
        Shell-safe quoted argument
    """
    return shlex.quote(arg)


def join_args(name: str, args: Iterable[str]) -> str:
    """Join a command name and its arguments with single spaces.

    No quoting is applied. An empty argument list yields the bare name
    with no trailing space.
    """
    return " ".join([name, *args])
