"""SSH connection configuration.

SSHConfig.key authenticates with a private key, SSHConfig.password with
a password. Both resolve the target to a single socket address at
construction time and open an SSHSession through ``create_session``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import asyncssh

from remote_client.config import Settings
from remote_client.errors import AuthenticationError, ConfigError, wrap_error
from remote_client.ssh.host_keys import HostKeyPolicy, default_host_key_policy
from remote_client.ssh.session import SSHSession
from remote_client.utils.address import SocketAddress, resolve_address

logger = logging.getLogger(__name__)


def _check_common(username: str, inactivity_timeout: float) -> None:
    if not username:
        raise ConfigError("username must not be empty")
    if inactivity_timeout <= 0:
        raise ConfigError(f"inactivity_timeout must be > 0, got {inactivity_timeout}")


@dataclass(frozen=True, kw_only=True)
class SSHConfig(ABC):
    """Configuration shared by every SSH authentication variant."""

    username: str
    address: SocketAddress
    inactivity_timeout: float
    host_key_policy: HostKeyPolicy = field(repr=False)

    # Human readable name of the authentication method
    auth_method: str = field(init=False, default="", repr=False)

    @classmethod
    async def key(
        cls,
        username: str,
        address: str | tuple[str, int],
        key_path: str | Path,
        inactivity_timeout: float | None = None,
        *,
        passphrase: str | None = None,
        host_key_policy: HostKeyPolicy | None = None,
        settings: Settings | None = None,
    ) -> "SSHKeyConfig":
        """Build a public key configuration.

        Args:
            username: Remote user
            address: "host:port" string or (host, port) tuple
            key_path: Path to the private key file
            inactivity_timeout: Seconds of silence before the link is closed
            passphrase: Passphrase for an encrypted private key
            host_key_policy: Host key verification policy
            settings: Defaults for timeout and host key policy

        Raises:
            ConfigError: If an argument is invalid
            ConnectionError: If the address does not resolve
        """
        settings = settings or Settings.from_env()
        timeout = inactivity_timeout if inactivity_timeout is not None else settings.inactivity_timeout
        _check_common(username, timeout)
        if not str(key_path):
            raise ConfigError("key_path must not be empty")

        return SSHKeyConfig(
            username=username,
            address=await resolve_address(address),
            inactivity_timeout=timeout,
            host_key_policy=host_key_policy or default_host_key_policy(settings),
            key_path=Path(key_path).expanduser(),
            passphrase=passphrase,
        )

    @classmethod
    async def password(
        cls,
        username: str,
        address: str | tuple[str, int],
        password: str,
        inactivity_timeout: float | None = None,
        *,
        host_key_policy: HostKeyPolicy | None = None,
        settings: Settings | None = None,
    ) -> "SSHPasswordConfig":
        """Build a password configuration.

        Raises:
            ConfigError: If an argument is invalid
            ConnectionError: If the address does not resolve
        """
        settings = settings or Settings.from_env()
        timeout = inactivity_timeout if inactivity_timeout is not None else settings.inactivity_timeout
        _check_common(username, timeout)

        return SSHPasswordConfig(
            username=username,
            address=await resolve_address(address),
            inactivity_timeout=timeout,
            host_key_policy=host_key_policy or default_host_key_policy(settings),
            password=password,
        )

    @abstractmethod
    def auth_options(self) -> dict[str, Any]:
        """Return the asyncssh connect options for this auth method."""

    async def create_session(self) -> SSHSession:
        """Connect, authenticate and return a ready session.

        Raises:
            AuthenticationError: If the server rejects the credential
            ConnectionError: For any transport, key or I/O failure
        """
        auth = self.auth_options()

        logger.info(
            "Opening SSH connection to %s@%s (auth=%s, inactivity_timeout=%ss)",
            self.username,
            self.address,
            self.auth_method,
            self.inactivity_timeout,
        )
        try:
            conn = await asyncssh.connect(
                self.address.host,
                port=self.address.port,
                username=self.username,
                agent_path=None,
                **self.host_key_policy.connect_options(),
                **auth,
            )
        except asyncssh.PermissionDenied as e:
            logger.warning(
                "Authentication failed for %s@%s (auth=%s): %s",
                self.username,
                self.address,
                self.auth_method,
                e,
            )
            raise AuthenticationError(
                f"Failed to authenticate with {self.auth_method}", cause=e
            ) from e
        except (asyncssh.Error, OSError) as e:
            logger.error("Cannot connect to %s: %s", self.address, e)
            raise wrap_error(e, f"Cannot connect to {self.address}") from e

        logger.info("SSH connection established to %s@%s", self.username, self.address)
        return SSHSession(
            conn,
            username=self.username,
            address=self.address,
            inactivity_timeout=self.inactivity_timeout,
        )


@dataclass(frozen=True, kw_only=True)
class SSHKeyConfig(SSHConfig):
    """Authenticate with a private key file."""

    key_path: Path
    passphrase: str | None = field(default=None, repr=False)
    auth_method: str = field(init=False, default="public key", repr=False)

    def load_key(self) -> asyncssh.SSHKey:
        """Read the private key from disk.

        Raises:
            ConnectionError: If the key is missing, malformed, or the
                passphrase is wrong
        """
        try:
            return asyncssh.read_private_key(self.key_path, self.passphrase)
        except (asyncssh.KeyImportError, asyncssh.KeyEncryptionError, OSError) as e:
            raise wrap_error(e, f"Cannot load private key {self.key_path}") from e

    def auth_options(self) -> dict[str, Any]:
        return {
            "client_keys": [self.load_key()],
            "preferred_auth": "publickey",
        }


@dataclass(frozen=True, kw_only=True)
class SSHPasswordConfig(SSHConfig):
    """Authenticate with a password."""

    password: str = field(repr=False)
    auth_method: str = field(init=False, default="password", repr=False)

    def auth_options(self) -> dict[str, Any]:
        return {
            "client_keys": None,
            "password": self.password,
            "preferred_auth": "password,keyboard-interactive",
        }
