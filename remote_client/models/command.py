"""Command execution data models."""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from remote_client.errors import CommandError
from remote_client.utils.shell import join_args, quote_arg


@dataclass(frozen=True)
class Command:
    """A remote command: a name followed by ordered arguments.

    Instances are immutable. ``arg`` and ``args`` return a new Command
    with the extra arguments appended, so a partially built command can be
    shared and extended without aliasing.

    Serialization joins the name and arguments with single spaces and does
    no quoting. Callers own shell-safety unless they use
    ``to_shell(quote=True)``.
    """

    name: str
    arguments: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.name:
            raise CommandError("command name must not be empty")
        object.__setattr__(self, "arguments", tuple(str(a) for a in self.arguments))

    def arg(self, value: str) -> "Command":
        """Return a copy with one argument appended."""
        return replace(self, arguments=(*self.arguments, str(value)))

    def args(self, values: Iterable[str]) -> "Command":
        """Return a copy with every value appended in order."""
        return replace(self, arguments=(*self.arguments, *(str(v) for v in values)))

    def get_cmd(self) -> str:
        """Return the command name."""
        return self.name

    def get_args(self) -> list[str]:
        """Return the arguments in insertion order."""
        return list(self.arguments)

    def to_shell(self, quote: bool = False) -> str:
        """Render the command line sent to the remote host.

        Args:
            quote: Quote each argument with POSIX shell rules. The name is
                left untouched so compound names like "ls -la" still work.

        Returns:
            Command line string
        """
        args = [quote_arg(a) for a in self.arguments] if quote else self.arguments
        return join_args(self.name, args)

    def to_bytes(self) -> bytes:
        """Serialize as UTF-8: name and arguments joined by single spaces."""
        return self.to_shell().encode("utf-8")

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def __str__(self) -> str:
        return self.to_shell()


def cmd(name: str, *args: str) -> Command:
    """Build a Command from a name and a variadic argument list.

    Example:
        >>> cmd("ls", "-l", "-a").get_args()
        ['-l', '-a']
    """
    return Command(name).args(args)


@dataclass(frozen=True)
class CommandOutput:
    """Result of a remote command execution.

    ``status_code`` is None when the remote side never reported an exit
    status, e.g. the process was killed by a signal or the channel closed
    abnormally.
    """

    stdout: bytes = b""
    stderr: bytes = b""
    status_code: int | None = None
    exit_signal: str | None = None

    @property
    def ok(self) -> bool:
        """True if the command reported exit status 0."""
        return self.status_code == 0

    @property
    def stdout_text(self) -> str:
        """Captured stdout decoded as UTF-8."""
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        """Captured stderr decoded as UTF-8."""
        return self.stderr.decode("utf-8", errors="replace")
