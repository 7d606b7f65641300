"""Deadline guard for Docker daemon calls.

Every daemon-facing call runs inside exactly one :func:`deadline` block:

    async with deadline(self._query_timeout_s, "inspect_image", image):
        data = await self._docker.images.inspect(image)

The block bounds the call with ``asyncio.timeout`` and translates library
errors into the dockutil taxonomy. Caller cancellation passes through
untouched.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiohttp
from aiodocker.exceptions import DockerError

from dockutil.errors import NotFoundError, QueryTimeoutError, TransportError
from dockutil.observability.logging import get_logger
from dockutil.observability.metrics import daemon_request_duration_seconds, daemon_requests_total

_log = get_logger("docker.deadline")

_HTTP_NOT_FOUND = 404


@asynccontextmanager
async def deadline(timeout_s: float, operation: str, target: str = "") -> AsyncIterator[None]:
    """Bound the enclosed daemon call by ``timeout_s`` seconds.

    Raises:
        QueryTimeoutError: the timeout elapsed before the body finished.
        NotFoundError: the daemon answered 404.
        TransportError: any other daemon, HTTP or socket failure.
    """
    started = time.perf_counter()
    outcome = "ok"
    try:
        async with asyncio.timeout(timeout_s):
            yield
    except TimeoutError as exc:
        outcome = "timeout"
        _log.warning("docker_query_timeout", operation=operation, target=target, timeout_s=timeout_s)
        raise QueryTimeoutError(operation, target, timeout_s) from exc
    except DockerError as exc:
        if exc.status == _HTTP_NOT_FOUND:
            outcome = "not_found"
            raise NotFoundError(f"{operation}: {exc.message}", operation, target) from exc
        outcome = "error"
        raise TransportError(
            f"{operation} failed: {exc.message}", operation, target, status=exc.status
        ) from exc
    except (aiohttp.ClientError, OSError) as exc:
        outcome = "error"
        raise TransportError(f"{operation} failed: {exc}", operation, target) from exc
    except asyncio.CancelledError:
        outcome = "cancelled"
        raise
    finally:
        daemon_requests_total.labels(operation=operation, outcome=outcome).inc()
        daemon_request_duration_seconds.labels(operation=operation).observe(time.perf_counter() - started)
