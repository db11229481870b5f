"""SSH host key verification policies.

A policy decides whether the key presented by the server is trusted
before authentication proceeds. Policies translate into asyncssh connect
options, so verification happens inside the SSH handshake.

Available policies:
- KnownHostsPolicy: OpenSSH known_hosts file (default)
- PinnedHostKeyPolicy: explicit list of trusted public keys
- TrustOnFirstUsePolicy: remember the first key seen per host:port
- AcceptAnyHostKeyPolicy: no verification, explicit opt-in only
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import asyncssh

from remote_client.config import Settings
from remote_client.errors import ConfigError

logger = logging.getLogger(__name__)


class HostKeyPolicy(ABC):
    """Base class for host key verification policies."""

    @abstractmethod
    def connect_options(self) -> dict[str, Any]:
        """Return keyword arguments for ``asyncssh.connect``."""


class _VerifyingClient(asyncssh.SSHClient):
    """asyncssh client that defers host key checks to a policy."""

    def __init__(self, policy: "TrustOnFirstUsePolicy"):
        self._policy = policy

    def validate_host_public_key(
        self,
        host: str,
        addr: str,
        port: int,
        key: asyncssh.SSHKey,
    ) -> bool:
        return self._policy.verify(host, port, key)


class TrustOnFirstUsePolicy(HostKeyPolicy):
    """Trust the first key seen for each host and reject later changes.

    Fingerprints are kept in memory and, when ``store_path`` is given,
    persisted one per line as ``<host>:<port> <fingerprint>``. A store
    that cannot be written makes ``verify`` reject the key and keeps the
    failure in ``store_error``.
    """

    def __init__(self, store_path: str | Path | None = None):
        """Initialize trust-on-first-use policy.

        Args:
            store_path: File to persist fingerprints in, or None for memory only

        Raises:
            ConfigError: If the store cannot be read or created
        """
        self.store_path = Path(os.path.expanduser(store_path)) if store_path else None
        self._fingerprints: dict[str, str] = {}
        self.store_error: ConfigError | None = None
        if self.store_path is not None:
            self._fingerprints.update(self._load(self.store_path))

    @staticmethod
    def _load(path: Path) -> dict[str, str]:
        entries: dict[str, str] = {}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch(exist_ok=True)
            text = path.read_text()
        except OSError as e:
            raise ConfigError(f"Cannot open host key store {path}: {e}", cause=e) from e

        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split()
            if len(parts) == 2:
                entries[parts[0]] = parts[1]
        return entries

    def _record(self, entry: str, fingerprint: str) -> None:
        """Remember a fingerprint, persisting it first when a store is set.

        Raises:
            ConfigError: If the store cannot be written
        """
        if self.store_path is not None:
            try:
                with self.store_path.open("a") as store:
                    store.write(f"{entry} {fingerprint}\n")
            except OSError as e:
                raise ConfigError(
                    f"Cannot write host key store {self.store_path}: {e}", cause=e
                ) from e
        self._fingerprints[entry] = fingerprint

    def verify(self, host: str, port: int, key: asyncssh.SSHKey) -> bool:
        """Check a presented key against the recorded fingerprint.

        Args:
            host: Address the client connected to
            port: Port the client connected to
            key: Host key presented by the server

        Returns:
            True if the key is new (and now recorded) or matches
        """
        entry = f"{host}:{port}"
        fingerprint = key.get_fingerprint("sha256")
        known = self._fingerprints.get(entry)

        if known is None:
            try:
                self._record(entry, fingerprint)
            except ConfigError as e:
                logger.error("Rejecting host key for %s: %s", entry, e)
                self.store_error = e
                return False
            logger.warning("Trusting new host key for %s (%s)", entry, fingerprint)
            return True

        if known != fingerprint:
            logger.error(
                "Host key for %s changed (expected %s, got %s)",
                entry,
                known,
                fingerprint,
            )
            return False
        return True

    def connect_options(self) -> dict[str, Any]:
        # Empty trust lists make asyncssh ask the client for every key
        return {
            "known_hosts": ([], [], []),
            "client_factory": lambda: _VerifyingClient(self),
        }


class KnownHostsPolicy(HostKeyPolicy):
    """Verify host keys against an OpenSSH known_hosts file."""

    def __init__(
        self,
        known_hosts_path: str | None = None,
        strict_checking: bool = True,
    ):
        """Initialize known_hosts policy.

        Args:
            known_hosts_path: Path to known_hosts file or 'none' to disable
            strict_checking: Reject connections when the file is missing

        Raises:
            ConfigError: If strict mode and file missing
        """
        self.strict_checking = strict_checking
        self._known_hosts = self._resolve_known_hosts(known_hosts_path)
        # Without a file, remember keys for the life of this policy only
        self._fallback = TrustOnFirstUsePolicy() if self._known_hosts is None else None

    def _resolve_known_hosts(self, value: str | None) -> str | None:
        """Resolve known_hosts path with security defaults.

        Returns:
            Path to known_hosts file or None to fall back to in-memory TOFU

        Raises:
            ConfigError: If strict mode and file missing
        """
        if value and value.lower() == "none":
            logger.critical(
                "SSH known_hosts checking DISABLED, host keys are trusted on first use. "
                "Only use in trusted networks."
            )
            return None

        path = Path(os.path.expanduser(value)) if value else Path.home() / ".ssh" / "known_hosts"
        if not path.exists():
            if self.strict_checking:
                raise ConfigError(
                    f"SSH host key verification required but known_hosts "
                    f"file not found: {path}. Add host keys with "
                    f"'ssh-keyscan <hostname> >> {path}'"
                )
            logger.warning(
                "known_hosts not found at %s, host keys are trusted on first use",
                path,
            )
            return None

        return str(path)

    def get_known_hosts_path(self) -> str | None:
        """Get path to known_hosts file, or None if file checking is off."""
        return self._known_hosts

    def is_enabled(self) -> bool:
        """Check if known_hosts file checking is enabled."""
        return self._known_hosts is not None

    def connect_options(self) -> dict[str, Any]:
        if self._fallback is not None:
            return self._fallback.connect_options()
        return {"known_hosts": self._known_hosts}


class PinnedHostKeyPolicy(HostKeyPolicy):
    """Accept only the given public keys."""

    def __init__(self, *public_keys: str | bytes | asyncssh.SSHKey):
        """Initialize pinned key policy.

        Args:
            public_keys: OpenSSH-format public keys or SSHKey objects

        Raises:
            ConfigError: If no key is given or a key cannot be parsed
        """
        if not public_keys:
            raise ConfigError("at least one pinned host key is required")

        keys: list[asyncssh.SSHKey] = []
        for key in public_keys:
            if isinstance(key, asyncssh.SSHKey):
                keys.append(key)
                continue
            try:
                keys.append(asyncssh.import_public_key(key))
            except (asyncssh.KeyImportError, ValueError) as e:
                raise ConfigError(f"invalid pinned host key: {e}", cause=e) from e
        self.keys = keys

    def connect_options(self) -> dict[str, Any]:
        return {"known_hosts": (list(self.keys), [], [])}


class AcceptAnyHostKeyPolicy(HostKeyPolicy):
    """Skip host key verification entirely."""

    def __init__(self) -> None:
        logger.critical(
            "SSH HOST KEY VERIFICATION DISABLED. "
            "This is INSECURE and vulnerable to MITM attacks."
        )

    def connect_options(self) -> dict[str, Any]:
        return {"known_hosts": None}


def default_host_key_policy(settings: Settings | None = None) -> HostKeyPolicy:
    """Build the policy described by settings (known_hosts by default)."""
    settings = settings or Settings.from_env()
    return KnownHostsPolicy(
        known_hosts_path=settings.known_hosts,
        strict_checking=settings.strict_host_key_checking,
    )
