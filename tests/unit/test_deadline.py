"""Unit tests for dockutil.client.deadline."""

from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aiodocker.exceptions import DockerError

from dockutil.client.deadline import deadline
from dockutil.errors import NotFoundError, QueryTimeoutError, TransportError


class TestDeadlineTimeout:
    @pytest.mark.asyncio
    async def test_slow_call_raises_query_timeout(self) -> None:
        with pytest.raises(QueryTimeoutError) as exc_info:
            async with deadline(0.01, "inspect_container", "abc123"):
                await asyncio.sleep(1)

        err = exc_info.value
        assert err.operation == "inspect_container"
        assert err.target == "abc123"
        assert err.timeout_s == 0.01
        assert isinstance(err.__cause__, TimeoutError)

    @pytest.mark.asyncio
    async def test_fast_call_passes_through(self) -> None:
        async with deadline(1.0, "info"):
            result = await asyncio.sleep(0, result={"Name": "host"})
        assert result == {"Name": "host"}

    @pytest.mark.asyncio
    async def test_each_block_gets_its_own_budget(self) -> None:
        for _ in range(3):
            async with deadline(0.2, "info"):
                await asyncio.sleep(0.1)


class TestDeadlineErrorTranslation:
    @pytest.mark.asyncio
    async def test_404_becomes_not_found(self) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            async with deadline(1.0, "inspect_image", "sha256:abc"):
                raise DockerError(404, {"message": "no such image"})
        assert exc_info.value.target == "sha256:abc"
        assert "no such image" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_other_status_becomes_transport_error(self) -> None:
        with pytest.raises(TransportError) as exc_info:
            async with deadline(1.0, "list_images"):
                raise DockerError(500, {"message": "server error"})
        assert exc_info.value.status == 500
        assert isinstance(exc_info.value.__cause__, DockerError)

    @pytest.mark.asyncio
    async def test_client_error_becomes_transport_error(self) -> None:
        with pytest.raises(TransportError) as exc_info:
            async with deadline(1.0, "info"):
                raise aiohttp.ClientConnectionError("connection reset")
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    async def test_os_error_becomes_transport_error(self) -> None:
        with pytest.raises(TransportError):
            async with deadline(1.0, "info"):
                raise FileNotFoundError("/var/run/docker.sock")

    @pytest.mark.asyncio
    async def test_unrelated_error_propagates_unchanged(self) -> None:
        with pytest.raises(KeyError):
            async with deadline(1.0, "info"):
                raise KeyError("Name")


class TestDeadlineCancellation:
    @pytest.mark.asyncio
    async def test_caller_cancellation_is_not_translated(self) -> None:
        entered = asyncio.Event()

        async def call() -> None:
            async with deadline(10.0, "container_stats", "abc"):
                entered.set()
                await asyncio.sleep(3600)

        task = asyncio.create_task(call())
        await entered.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_outer_timeout_still_applies(self) -> None:
        with pytest.raises(TimeoutError):
            async with asyncio.timeout(0.01):
                async with deadline(10.0, "info"):
                    await asyncio.sleep(1)
