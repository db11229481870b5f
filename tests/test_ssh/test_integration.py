"""End-to-end tests against an in-process asyncssh server on localhost."""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from pathlib import Path

import asyncssh
import pytest
import pytest_asyncio

from remote_client import Client, cmd
from remote_client.config import Settings
from remote_client.errors import AuthenticationError, ConnectionError
from remote_client.models import ConnectionState
from remote_client.ssh import SSHConfig
from remote_client.ssh.host_keys import (
    AcceptAnyHostKeyPolicy,
    HostKeyPolicy,
    KnownHostsPolicy,
    PinnedHostKeyPolicy,
    TrustOnFirstUsePolicy,
)

PASSWORD = "good"


@dataclass
class SSHTestServer:
    port: int
    host_key: asyncssh.SSHKey
    client_key_path: Path
    closed: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def address(self) -> str:
        return f"127.0.0.1:{self.port}"


async def handle_process(process: asyncssh.SSHServerProcess) -> None:
    """Tiny command interpreter: ``echo``, ``fail`` and nothing else."""
    command = process.command or ""
    if command.startswith("echo "):
        process.stdout.write(command[len("echo "):] + "\n")
        process.exit(0)
    elif command == "fail":
        process.stderr.write("boom\n")
        process.exit(3)
    else:
        process.stderr.write(f"{command}: not found\n")
        process.exit(127)


@pytest_asyncio.fixture
async def ssh_server(tmp_path: Path) -> AsyncIterator[SSHTestServer]:
    host_key = asyncssh.generate_private_key("ssh-ed25519")
    client_key = asyncssh.generate_private_key("ssh-ed25519")
    client_key_path = tmp_path / "id_ed25519"
    client_key.write_private_key(client_key_path)
    closed = asyncio.Event()

    class Server(asyncssh.SSHServer):
        def connection_lost(self, exc: Exception | None) -> None:
            closed.set()

        def password_auth_supported(self) -> bool:
            return True

        def validate_password(self, username: str, password: str) -> bool:
            return username == "tester" and password == PASSWORD

        def public_key_auth_supported(self) -> bool:
            return True

    authorized = asyncssh.import_authorized_keys(client_key.export_public_key().decode())
    server = await asyncssh.create_server(
        Server,
        "127.0.0.1",
        0,
        server_host_keys=[host_key],
        authorized_client_keys=authorized,
        process_factory=handle_process,
    )
    port = server.sockets[0].getsockname()[1]
    try:
        yield SSHTestServer(port, host_key, client_key_path, closed)
    finally:
        server.close()
        await server.wait_closed()


def pinned(server: SSHTestServer) -> HostKeyPolicy:
    return PinnedHostKeyPolicy(server.host_key.convert_to_public())


async def password_client(
    server: SSHTestServer,
    password: str = PASSWORD,
    policy: HostKeyPolicy | None = None,
    inactivity_timeout: float = 30,
) -> Client:
    config = await SSHConfig.password(
        "tester",
        server.address,
        password,
        inactivity_timeout,
        host_key_policy=policy or pinned(server),
        settings=Settings(),
    )
    return await Client.connect(config)


@pytest.mark.asyncio
async def test_password_exec(ssh_server: SSHTestServer) -> None:
    """Password login runs a command and returns its exact output."""
    async with await password_client(ssh_server) as client:
        output = await client.exec(cmd("echo", "hello"))

    assert output.stdout == b"hello\n"
    assert output.stderr == b""
    assert output.status_code == 0


@pytest.mark.asyncio
async def test_failing_command_reports_status_and_stderr(ssh_server: SSHTestServer) -> None:
    """A non-zero exit is a result, not an error."""
    async with await password_client(ssh_server) as client:
        output = await client.exec(cmd("fail"))

    assert output.status_code == 3
    assert output.stderr == b"boom\n"
    assert not output.ok


@pytest.mark.asyncio
async def test_wrong_password_is_authentication_error(ssh_server: SSHTestServer) -> None:
    with pytest.raises(AuthenticationError):
        await password_client(ssh_server, password="wrong")


@pytest.mark.asyncio
async def test_key_exec(ssh_server: SSHTestServer) -> None:
    """Public key login with an authorized key."""
    config = await SSHConfig.key(
        "tester",
        ssh_server.address,
        ssh_server.client_key_path,
        30,
        host_key_policy=pinned(ssh_server),
        settings=Settings(),
    )
    async with await Client.connect(config) as client:
        output = await client.exec(cmd("echo", "via key"))

    assert output.stdout == b"via key\n"


@pytest.mark.asyncio
async def test_unauthorized_key_is_authentication_error(
    ssh_server: SSHTestServer, tmp_path: Path
) -> None:
    other_key = tmp_path / "id_other"
    asyncssh.generate_private_key("ssh-ed25519").write_private_key(other_key)
    config = await SSHConfig.key(
        "tester",
        ssh_server.address,
        other_key,
        30,
        host_key_policy=pinned(ssh_server),
        settings=Settings(),
    )

    with pytest.raises(AuthenticationError):
        await config.create_session()


@pytest.mark.asyncio
async def test_sequential_execs_are_independent(ssh_server: SSHTestServer) -> None:
    """Each command gets its own channel and its own output."""
    async with await password_client(ssh_server) as client:
        first = await client.exec(cmd("echo", "one"))
        second = await client.exec(cmd("fail"))
        third = await client.exec(cmd("echo", "three"))

    assert (first.stdout, first.status_code) == (b"one\n", 0)
    assert (second.stdout, second.status_code) == (b"", 3)
    assert (third.stdout, third.status_code) == (b"three\n", 0)


@pytest.mark.asyncio
async def test_pinned_key_mismatch_is_connection_error(ssh_server: SSHTestServer) -> None:
    wrong = PinnedHostKeyPolicy(asyncssh.generate_private_key("ssh-ed25519").convert_to_public())

    with pytest.raises(ConnectionError) as exc_info:
        await password_client(ssh_server, policy=wrong)

    assert isinstance(exc_info.value.cause, asyncssh.HostKeyNotVerifiable)


@pytest.mark.asyncio
async def test_known_hosts_file(ssh_server: SSHTestServer, tmp_path: Path) -> None:
    """A matching known_hosts entry is accepted and a different one rejected."""
    public = ssh_server.host_key.export_public_key().decode().strip()
    known_hosts = tmp_path / "known_hosts"
    known_hosts.write_text(f"[127.0.0.1]:{ssh_server.port} {public}\n")

    async with await password_client(ssh_server, policy=KnownHostsPolicy(str(known_hosts))) as client:
        assert (await client.exec(cmd("echo", "known"))).stdout == b"known\n"

    other = asyncssh.generate_private_key("ssh-ed25519").export_public_key().decode().strip()
    known_hosts.write_text(f"[127.0.0.1]:{ssh_server.port} {other}\n")
    with pytest.raises(ConnectionError):
        await password_client(ssh_server, policy=KnownHostsPolicy(str(known_hosts)))


@pytest.mark.asyncio
async def test_trust_on_first_use(ssh_server: SSHTestServer, tmp_path: Path) -> None:
    """The first key is recorded; a conflicting record blocks the connection."""
    store = tmp_path / "trusted_hosts"
    policy = TrustOnFirstUsePolicy(store)

    async with await password_client(ssh_server, policy=policy) as client:
        await client.exec(cmd("echo", "first"))

    fingerprint = ssh_server.host_key.get_fingerprint("sha256")
    assert store.read_text() == f"127.0.0.1:{ssh_server.port} {fingerprint}\n"

    store.write_text(f"127.0.0.1:{ssh_server.port} SHA256:bogus\n")
    with pytest.raises(ConnectionError):
        await password_client(ssh_server, policy=TrustOnFirstUsePolicy(store))


@pytest.mark.asyncio
async def test_accept_any_host_key(ssh_server: SSHTestServer) -> None:
    async with await password_client(ssh_server, policy=AcceptAnyHostKeyPolicy()) as client:
        assert (await client.exec(cmd("echo", "any"))).ok


@pytest.mark.asyncio
async def test_exec_after_disconnect(ssh_server: SSHTestServer) -> None:
    client = await password_client(ssh_server)
    session = client.session

    await client.disconnect()

    assert session.state is ConnectionState.DISCONNECTED
    with pytest.raises(ConnectionError):
        await session.exec(cmd("echo", "late"))
    with pytest.raises(ConnectionError):
        await client.exec(cmd("echo", "late"))
    await asyncio.wait_for(ssh_server.closed.wait(), 5)


@pytest.mark.asyncio
async def test_idle_connection_is_closed(ssh_server: SSHTestServer) -> None:
    """The server sees the link drop once the inactivity timeout passes."""
    client = await password_client(ssh_server, inactivity_timeout=0.3)

    await asyncio.wait_for(ssh_server.closed.wait(), 5)

    with pytest.raises(ConnectionError, match="inactivity"):
        await client.exec(cmd("echo", "late"))
    await client.disconnect()


@pytest.mark.asyncio
async def test_activity_keeps_connection_open(ssh_server: SSHTestServer) -> None:
    async with await password_client(ssh_server, inactivity_timeout=0.5) as client:
        for i in range(4):
            await asyncio.sleep(0.25)
            output = await client.exec(cmd("echo", str(i)))
            assert output.stdout == f"{i}\n".encode()

        assert not ssh_server.closed.is_set()
