"""Secure shell transport."""

from remote_client.ssh.config import SSHConfig, SSHKeyConfig, SSHPasswordConfig
from remote_client.ssh.host_keys import (
    AcceptAnyHostKeyPolicy,
    HostKeyPolicy,
    KnownHostsPolicy,
    PinnedHostKeyPolicy,
    TrustOnFirstUsePolicy,
    default_host_key_policy,
)
from remote_client.ssh.session import SSHSession

__all__ = [
    "AcceptAnyHostKeyPolicy",
    "HostKeyPolicy",
    "KnownHostsPolicy",
    "PinnedHostKeyPolicy",
    "SSHConfig",
    "SSHKeyConfig",
    "SSHPasswordConfig",
    "SSHSession",
    "TrustOnFirstUsePolicy",
    "default_host_key_policy",
]
