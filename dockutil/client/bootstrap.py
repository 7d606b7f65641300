"""Docker connection bootstrap."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import aiodocker

from dockutil.client.deadline import deadline
from dockutil.observability.logging import get_logger

_log = get_logger("docker.bootstrap")


async def connect_to_docker(
    query_timeout_s: float,
    docker_factory: Callable[[], Any] = aiodocker.Docker,
) -> Any:
    """Connect to the Docker daemon and verify it answers.

    The client is configured from the environment (``DOCKER_HOST`` and
    friends) and negotiates the API version on first use. Building the client
    does not contact the daemon, so a ``system.info()`` round-trip under the
    query deadline is what confirms reachability.

    Returns:
        The connected ``aiodocker.Docker`` client.

    Raises:
        Exception: whatever client construction or the info call raised; the
            half-open client session is closed first.
    """
    docker = docker_factory()
    try:
        async with deadline(query_timeout_s, "info"):
            info = await docker.system.info()
    except BaseException:
        await docker.close()
        raise

    _log.info(
        "docker_connected",
        server_version=info.get("ServerVersion", ""),
        name=info.get("Name", ""),
    )
    return docker
