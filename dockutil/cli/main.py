"""dockutil command-line interface.

Commands:
    dockutil version                        Print version and exit.
    dockutil hostname                       Print the daemon host name.
    dockutil images [--all]                 List images.
    dockutil volumes                        Count attached and dangling volumes.
    dockutil labels                         Print labels of running containers.
    dockutil inspect <id> [--size] [--no-cache]
    dockutil resolve <image>                Resolve a sha256/repo-digest to a name.
    dockutil stats <id>                     Print one stats sample.
    dockutil storage                        Print storage pool statistics.

Every command opens one daemon session, prints JSON and closes the session.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click

from dockutil import __version__
from dockutil.client.docker_util import DockerUtil
from dockutil.client.init_gate import RetryPolicy
from dockutil.config import load_config
from dockutil.errors import DockUtilError
from dockutil.observability.logging import setup_logging

# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------


def _make_docker(query_timeout: float | None) -> DockerUtil:
    config = load_config()
    setup_logging(config.log.level, json_output=not sys.stderr.isatty())
    docker_config = config.docker
    if query_timeout is not None:
        docker_config = dataclasses.replace(docker_config, query_timeout_s=query_timeout)
    # One-shot commands get a single bootstrap attempt.
    return DockerUtil(docker_config, retry_policy=RetryPolicy(max_attempts=1, cooldown_s=None))


def _run(ctx: click.Context, op: Callable[[DockerUtil], Awaitable[Any]]) -> Any:
    """Run ``op`` against a fresh DockerUtil and return its result.

    Raises click.ClickException on any dockutil error.
    """

    async def _session() -> Any:
        docker = _make_docker(ctx.obj.get("query_timeout"))
        try:
            return await op(docker)
        finally:
            await docker.close()

    try:
        return asyncio.run(_session())
    except DockUtilError as exc:
        raise click.ClickException(str(exc)) from exc


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, sort_keys=True, default=str))


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--query-timeout",
    type=float,
    default=None,
    help="Per-call daemon timeout in seconds (overrides DOCKUTIL_QUERY_TIMEOUT).",
)
@click.pass_context
def cli(ctx: click.Context, query_timeout: float | None) -> None:
    """dockutil - resilient Docker daemon queries."""
    ctx.ensure_object(dict)
    ctx.obj["query_timeout"] = query_timeout


@cli.command()
def version() -> None:
    """Print the dockutil version."""
    click.echo(f"dockutil {__version__}")


@cli.command()
@click.pass_context
def hostname(ctx: click.Context) -> None:
    """Print the Docker host name."""
    click.echo(_run(ctx, lambda d: d.hostname()))


@cli.command()
@click.option("--all", "include_intermediate", is_flag=True, help="Include intermediate images.")
@click.pass_context
def images(ctx: click.Context, include_intermediate: bool) -> None:
    """List images."""
    _echo_json(_run(ctx, lambda d: d.images(include_intermediate)))


@cli.command()
@click.pass_context
def volumes(ctx: click.Context) -> None:
    """Count attached and dangling volumes."""
    attached, dangling = _run(ctx, lambda d: d.count_volumes())
    _echo_json({"attached": attached, "dangling": dangling})


@cli.command()
@click.pass_context
def labels(ctx: click.Context) -> None:
    """Print labels of running containers, keyed by container ID."""
    _echo_json(_run(ctx, lambda d: d.all_container_labels()))


@cli.command()
@click.argument("container_id")
@click.option("--size", "with_size", is_flag=True, help="Include filesystem size fields.")
@click.option("--no-cache", is_flag=True, help="Bypass the inspect cache.")
@click.pass_context
def inspect(ctx: click.Context, container_id: str, with_size: bool, no_cache: bool) -> None:
    """Inspect a container."""

    async def _op(d: DockerUtil) -> Any:
        if no_cache:
            return await d.inspect_no_cache(container_id, with_size)
        return await d.inspect(container_id, with_size)

    _echo_json(_run(ctx, _op).raw)


@cli.command()
@click.argument("image")
@click.pass_context
def resolve(ctx: click.Context, image: str) -> None:
    """Resolve an image reference to a repository name."""
    click.echo(_run(ctx, lambda d: d.resolve_image_name(image)))


@cli.command()
@click.argument("container_id")
@click.pass_context
def stats(ctx: click.Context, container_id: str) -> None:
    """Print one stats sample for a container."""
    _echo_json(_run(ctx, lambda d: d.container_stats(container_id)))


@cli.command()
@click.pass_context
def storage(ctx: click.Context) -> None:
    """Print storage pool statistics."""
    pools = _run(ctx, lambda d: d.storage_stats())
    _echo_json([{**dataclasses.asdict(p), "percent_used": p.percent_used()} for p in pools])


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
