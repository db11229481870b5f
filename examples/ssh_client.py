"""Run `ls -la` on a host over SSH with password authentication.

Usage:
    python examples/ssh_client.py USER HOST:PORT PASSWORD
"""

import asyncio
import logging
import sys

from remote_client import Client, RemoteError, SSHConfig, cmd, configure_logging

logger = logging.getLogger("remote_client.examples")


async def main(username: str, address: str, password: str) -> int:
    config = await SSHConfig.password(username, address, password, 10)
    client = await Client.connect(config)

    output = await client.exec(cmd("ls", "-la"), stdout=sys.stdout.buffer)
    logger.info("Remote command finished (status=%s)", output.status_code)

    await client.disconnect()
    return output.status_code or 0


if __name__ == "__main__":
    configure_logging()
    if len(sys.argv) != 4:
        print(__doc__, file=sys.stderr)
        sys.exit(2)
    try:
        sys.exit(asyncio.run(main(*sys.argv[1:])))
    except RemoteError as e:
        logger.error("%s", e)
        sys.exit(1)
