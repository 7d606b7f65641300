"""Resilient access to the local Docker daemon.

:class:`DockerUtil` owns the daemon connection and both caches. Every public
coroutine first passes the init gate, then either calls the daemon under the
query deadline or goes through a cache that does so on a miss.

Lifecycle::

    docker = DockerUtil(load_config().docker)
    labels = await docker.all_container_labels()   # first call bootstraps
    ...
    await docker.close()
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import aiodocker

from dockutil.cache.image_resolver import ImageNameResolver
from dockutil.cache.inspect_cache import InspectCache
from dockutil.cache.ttl_store import TTLStore
from dockutil.client.bootstrap import connect_to_docker
from dockutil.client.deadline import deadline
from dockutil.client.init_gate import InitGate, RetryPolicy
from dockutil.client.storage import build_docker_filter, parse_storage_stats_from_info
from dockutil.errors import ContainerNotFoundError, NotFoundError
from dockutil.models.config import DockerConfig
from dockutil.models.docker import ContainerInspect, InitState, StorageStats
from dockutil.observability.logging import get_logger
from dockutil.providers.container_id import AgentContainerIDProvider, CgroupContainerIDProvider


class DockerUtil:
    """Cached, deadline-bounded Docker client shared by agent subsystems."""

    def __init__(
        self,
        config: DockerConfig | None = None,
        *,
        retry_policy: RetryPolicy | None = None,
        store: TTLStore | None = None,
        id_provider: AgentContainerIDProvider | None = None,
        docker_factory: Callable[[], Any] = aiodocker.Docker,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create an unconnected client; the first operation connects.

        Args:
            config: Daemon access settings; defaults to :class:`DockerConfig`.
            retry_policy: Bootstrap retry policy for the init gate.
            store: TTL store backing the inspect cache; a private one is
                created when omitted.
            id_provider: Source of the agent's own container ID.
            docker_factory: Builds the ``aiodocker.Docker`` client.
            clock: Monotonic clock used by the init gate.
        """
        self._log = get_logger("docker.util")
        self._config = config if config is not None else DockerConfig()
        self._query_timeout_s = self._config.query_timeout_s
        self._docker_factory = docker_factory
        self._id_provider = id_provider if id_provider is not None else CgroupContainerIDProvider()

        self._docker: Any = None
        self._last_invalidate_at: datetime | None = None

        self._gate = InitGate(self._bootstrap, retry_policy, clock=clock)
        self._store = store if store is not None else TTLStore(maxsize=self._config.inspect_cache_size)
        self._inspect_cache = InspectCache(self._store, self._inspect_no_cache)
        self._image_resolver = ImageNameResolver(self._inspect_image)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def config(self) -> DockerConfig:
        return self._config

    @property
    def state(self) -> InitState:
        return self._gate.state

    @property
    def last_invalidate_at(self) -> datetime | None:
        """When the caches were last emptied; None before the first bootstrap."""
        return self._last_invalidate_at

    async def ensure_ready(self) -> None:
        """Connect to the daemon if needed; raises ``InitError`` while unavailable."""
        await self._gate.ensure_ready()

    def invalidate_caches(self) -> None:
        """Empty both the image-name and the inspect cache."""
        self._image_resolver.clear()
        self._inspect_cache.clear()
        self._last_invalidate_at = datetime.now(tz=UTC)
        self._log.info("docker_caches_invalidated")

    async def close(self) -> None:
        """Close the daemon session; the next operation reconnects.

        An in-flight bootstrap is awaited first so the session it opens is
        the one closed here.
        """
        await self._gate.wait_idle()
        docker, self._docker = self._docker, None
        self._gate.reset()
        if docker is not None:
            await docker.close()
            self._log.info("docker_closed")

    async def _bootstrap(self) -> None:
        self._docker = await connect_to_docker(self._query_timeout_s, self._docker_factory)
        self._last_invalidate_at = datetime.now(tz=UTC)
        self._log.info(
            "docker_util_initialized",
            query_timeout_s=self._query_timeout_s,
            cache_duration_s=self._config.cache_duration_s,
            collect_network=self._config.collect_network,
        )

    # ------------------------------------------------------------------
    # Pass-through queries
    # ------------------------------------------------------------------

    async def images(self, include_intermediate: bool = False) -> list[dict[str, Any]]:
        """Return image summaries; ``include_intermediate`` adds untagged layers."""
        await self._gate.ensure_ready()
        async with deadline(self._query_timeout_s, "list_images"):
            return list(await self._docker.images.list(all=include_intermediate))

    async def count_volumes(self) -> tuple[int, int]:
        """Return the number of (attached, dangling) volumes.

        Both list calls share one query deadline.
        """
        await self._gate.ensure_ready()
        async with deadline(self._query_timeout_s, "list_volumes"):
            attached = await self._docker.volumes.list(filters=build_docker_filter("dangling", "false"))
            dangling = await self._docker.volumes.list(filters=build_docker_filter("dangling", "true"))
        return len(attached.get("Volumes") or []), len(dangling.get("Volumes") or [])

    async def raw_container_list(self, **options: Any) -> list[Any]:
        """List containers with raw daemon ``options``; validation is the caller's job."""
        await self._gate.ensure_ready()
        async with deadline(self._query_timeout_s, "list_containers"):
            return list(await self._docker.containers.list(**options))

    async def hostname(self) -> str:
        """Return the daemon host's name as reported by ``docker info``."""
        info = await self._info()
        return str(info.get("Name") or "")

    async def storage_stats(self) -> list[StorageStats]:
        """Return storage pool statistics; empty when the driver reports none."""
        return parse_storage_stats_from_info(await self._info())

    async def all_container_labels(self) -> dict[str, dict[str, str]]:
        """Map every running container ID to its labels."""
        containers = await self.raw_container_list()
        labels: dict[str, dict[str, str]] = {}
        for container in containers:
            container_id = _field(container, "Id")
            if not container_id:
                continue
            labels[str(container_id)] = dict(_field(container, "Labels") or {})
        return labels

    async def container_stats(self, container_id: str) -> dict[str, Any]:
        """Return one non-streamed stats sample for a container."""
        await self._gate.ensure_ready()
        async with deadline(self._query_timeout_s, "container_stats", container_id):
            stats = await self._docker.containers.container(container_id).stats(stream=False)
        if isinstance(stats, list):
            stats = stats[0] if stats else {}
        return dict(stats)

    # ------------------------------------------------------------------
    # Image name resolution
    # ------------------------------------------------------------------

    async def resolve_image_name(self, image: str) -> str:
        """Resolve a ``sha256`` or repo-digest reference to a repository name."""
        await self._gate.ensure_ready()
        return await self._image_resolver.resolve(image)

    async def resolve_image_name_from_container(self, container: ContainerInspect) -> str:
        """Like :meth:`resolve_image_name`, preferring the container's configured image."""
        await self._gate.ensure_ready()
        return await self._image_resolver.resolve_from_container(container)

    # ------------------------------------------------------------------
    # Container inspection
    # ------------------------------------------------------------------

    async def inspect(self, container_id: str, with_size: bool = False) -> ContainerInspect:
        """Return the inspect record for a container, cached for a few seconds."""
        await self._gate.ensure_ready()
        return await self._inspect_cache.get(container_id, with_size)

    async def inspect_no_cache(self, container_id: str, with_size: bool = False) -> ContainerInspect:
        """Return a fresh inspect record, bypassing the inspect cache."""
        await self._gate.ensure_ready()
        return await self._inspect_no_cache(container_id, with_size)

    async def inspect_self(self) -> ContainerInspect:
        """Inspect the container the agent runs in."""
        await self._gate.ensure_ready()
        container_id = self._id_provider.get_agent_container_id()
        return await self.inspect(container_id, with_size=False)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _info(self) -> dict[str, Any]:
        await self._gate.ensure_ready()
        async with deadline(self._query_timeout_s, "info"):
            return dict(await self._docker.system.info())

    async def _inspect_image(self, image: str) -> dict[str, Any]:
        async with deadline(self._query_timeout_s, "inspect_image", image):
            return dict(await self._docker.images.inspect(image))

    async def _inspect_no_cache(self, container_id: str, with_size: bool) -> ContainerInspect:
        try:
            async with deadline(self._query_timeout_s, "inspect_container", container_id):
                raw = await self._docker.containers.container(container_id).show(size=with_size)
        except NotFoundError as exc:
            raise ContainerNotFoundError(container_id) from exc
        return ContainerInspect.from_raw(raw, container_id)


def _field(container: Any, key: str) -> Any:
    """Read a summary field from an ``aiodocker`` container or a plain dict."""
    try:
        return container[key]
    except (KeyError, TypeError):
        return None
