"""Resolve digest-form image references to repository names.

Image identities are immutable once the daemon assigns them, so resolutions
are memoized for the life of the process. The map has no eviction: it grows
with the number of distinct digests observed and is only emptied by
:meth:`ImageNameResolver.clear`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from dockutil.errors import NotFoundError
from dockutil.models.docker import ContainerInspect
from dockutil.observability.logging import get_logger
from dockutil.observability.metrics import image_resolution_cache_size, image_resolutions_total

_SHA_PREFIX = "sha256:"
_REPO_DIGEST_MARKER = "@sha256:"


def is_image_sha_or_repo_digest(image: str) -> bool:
    """Return True for ``sha256:<hash>`` and ``repo@sha256:<hash>`` references."""
    return image.startswith(_SHA_PREFIX) or _REPO_DIGEST_MARKER in image


def pick_display_name(image: str, inspect: dict[str, Any]) -> str:
    """Choose a readable name from an image inspect payload.

    Order: smallest RepoTag, then smallest RepoDigest with its digest
    stripped, then ``image`` itself.
    """
    tags = [str(t) for t in inspect.get("RepoTags") or [] if t]
    if tags:
        return sorted(tags)[0]
    digests = [str(d) for d in inspect.get("RepoDigests") or [] if d]
    if digests:
        return sorted(digests)[0].split("@", 1)[0]
    return image


class ImageNameResolver:
    """Memoizing ``sha256`` to repository-name resolver.

    Concurrent resolutions of the same reference are serialized by a
    per-reference lock so the daemon sees one inspect call per miss;
    different references resolve in parallel.
    """

    def __init__(self, inspect_image: Callable[[str], Awaitable[dict[str, Any]]]) -> None:
        self._log = get_logger("cache.image_resolver")
        self._inspect_image = inspect_image
        self._names: dict[str, str] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def resolve(self, image: str) -> str:
        """Return the display name for ``image``.

        Non-digest references are returned unchanged without touching the
        daemon. An image the daemon does not know is memoized as its own
        name; any other daemon error propagates and is not memoized.
        """
        if not is_image_sha_or_repo_digest(image):
            image_resolutions_total.labels(result="passthrough").inc()
            return image

        cached = self._names.get(image)
        if cached is not None:
            image_resolutions_total.labels(result="cached").inc()
            return cached

        lock = self._locks.setdefault(image, asyncio.Lock())
        try:
            async with lock:
                cached = self._names.get(image)
                if cached is not None:
                    image_resolutions_total.labels(result="cached").inc()
                    return cached

                try:
                    inspect = await self._inspect_image(image)
                except NotFoundError:
                    image_resolutions_total.labels(result="not_found").inc()
                    self._log.debug("image_not_found", image=image)
                    name = image
                except Exception:
                    image_resolutions_total.labels(result="error").inc()
                    raise
                else:
                    name = pick_display_name(image, inspect)
                    if name == image:
                        self._log.info("image_unresolvable", image=image)
                    image_resolutions_total.labels(result="resolved").inc()

                self._store(image, name)
        finally:
            if self._locks.get(image) is lock:
                del self._locks[image]
        return name

    async def resolve_from_container(self, container: ContainerInspect) -> str:
        """Resolve a container's image, preferring its configured image name."""
        configured = container.config_image
        if configured and not is_image_sha_or_repo_digest(configured):
            return configured
        return await self.resolve(container.image)

    def get(self, image: str) -> str | None:
        """Return the memoized name for ``image`` without resolving it."""
        return self._names.get(image)

    def clear(self) -> None:
        self._names.clear()
        image_resolution_cache_size.set(0)

    def __len__(self) -> int:
        return len(self._names)

    def _store(self, image: str, name: str) -> None:
        self._names[image] = name
        image_resolution_cache_size.set(len(self._names))
