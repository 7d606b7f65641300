"""Short-lived memoization of ``docker inspect`` results.

Entries are keyed by (container ID, with_size). A request for the cheap
variant (``with_size=False``) may be served by a cached sized record, which
is a superset; a sized request is never served by an unsized record.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from dockutil.cache.ttl_store import TTLStore
from dockutil.models.docker import ContainerInspect
from dockutil.observability.logging import get_logger
from dockutil.observability.metrics import inspect_cache_requests_total, inspect_cache_write_errors_total

INSPECT_CACHE_TTL_S: float = 10.0

_KEY_PREFIX = "dockutil.inspect"


def inspect_cache_key(container_id: str, with_size: bool) -> str:
    """Return the store key for one inspect variant of a container."""
    return f"{_KEY_PREFIX}:{container_id}:{'sized' if with_size else 'plain'}"


def candidate_keys(container_id: str, with_size: bool) -> list[str]:
    """Return the keys that can satisfy a request, in lookup order."""
    keys = [inspect_cache_key(container_id, with_size)]
    if not with_size:
        keys.append(inspect_cache_key(container_id, True))
    return keys


class InspectCache:
    """Read-through inspect cache in front of an uncached fetch coroutine.

    No lock is held across the fetch: concurrent misses on the same key each
    call the daemon and the last write wins.
    """

    def __init__(
        self,
        store: TTLStore,
        fetch: Callable[[str, bool], Awaitable[ContainerInspect]],
        ttl_s: float = INSPECT_CACHE_TTL_S,
    ) -> None:
        self._log = get_logger("cache.inspect")
        self._store = store
        self._fetch = fetch
        self._ttl_s = ttl_s

    async def get(self, container_id: str, with_size: bool = False) -> ContainerInspect:
        """Return the inspect record, from cache when a live entry exists.

        Errors from the fetch propagate; nothing is cached in that case.
        """
        cached = self.lookup(container_id, with_size)
        if cached is not None:
            return cached

        inspect_cache_requests_total.labels(result="miss").inc()
        record = await self._fetch(container_id, with_size)

        key = inspect_cache_key(container_id, with_size)
        try:
            self._store.set(key, record, self._ttl_s)
        except Exception as exc:
            inspect_cache_write_errors_total.inc()
            self._log.warning("inspect_cache_write_failed", container_id=container_id, error=str(exc))
        return record

    def lookup(self, container_id: str, with_size: bool = False) -> ContainerInspect | None:
        """Return a cached record able to satisfy the request, without fetching."""
        for index, key in enumerate(candidate_keys(container_id, with_size)):
            cached = self._store.get(key)
            if cached is None:
                continue
            if not isinstance(cached, ContainerInspect):
                inspect_cache_requests_total.labels(result="invalid").inc()
                self._log.warning(
                    "inspect_cache_invalid_entry",
                    container_id=container_id,
                    key=key,
                    value_type=type(cached).__name__,
                )
                continue
            inspect_cache_requests_total.labels(result="hit" if index == 0 else "sized_hit").inc()
            return cached
        return None

    def invalidate(self, container_id: str) -> None:
        """Drop both variants of one container."""
        for with_size in (False, True):
            self._store.delete(inspect_cache_key(container_id, with_size))

    def clear(self) -> None:
        """Drop every inspect entry, leaving other users of the store alone."""
        self._store.delete_prefix(_KEY_PREFIX + ":")
