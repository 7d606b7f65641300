"""Load dockutil configuration from DOCKUTIL_* environment variables.

Numeric values are clamped into their allowed range; values that cannot be
parsed at all raise ``ValueError`` so misconfiguration fails at startup.
"""

from __future__ import annotations

import os

from dockutil.models.config import DockerConfig, DockUtilConfig, LogConfig, RetryConfig

_PREFIX = "DOCKUTIL_"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})
_LOG_LEVELS = frozenset({"debug", "info", "warning", "error"})


def load_config() -> DockUtilConfig:
    """Build a :class:`DockUtilConfig` from the current environment."""
    docker = DockerConfig(
        query_timeout_s=_float("QUERY_TIMEOUT", 5.0, lo=1.0, hi=300.0),
        cache_duration_s=_float("CACHE_DURATION", 10.0, lo=1.0, hi=3600.0),
        inspect_cache_size=_int("INSPECT_CACHE_SIZE", 4096, lo=16, hi=1_000_000),
        collect_network=_bool("COLLECT_NETWORK", True),
    )

    cooldown = _float("INIT_COOLDOWN", 300.0, lo=0.0, hi=86_400.0)
    initial_delay = _float("INIT_BACKOFF_INITIAL", 1.0, lo=0.0, hi=600.0)
    retry = RetryConfig(
        max_attempts=_int("INIT_MAX_ATTEMPTS", 5, lo=1, hi=100),
        initial_delay_s=initial_delay,
        max_delay_s=max(initial_delay, _float("INIT_BACKOFF_MAX", 30.0, lo=0.0, hi=3600.0)),
        cooldown_s=cooldown if cooldown > 0 else None,
    )

    level = _raw("LOG_LEVEL", "info").lower()
    if level not in _LOG_LEVELS:
        raise ValueError(f"{_PREFIX}LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got {level!r}")

    return DockUtilConfig(docker=docker, retry=retry, log=LogConfig(level=level))


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _raw(name: str, default: str) -> str:
    value = os.environ.get(_PREFIX + name, "").strip()
    return value or default


def _float(name: str, default: float, lo: float, hi: float) -> float:
    raw = _raw(name, "")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{_PREFIX}{name} must be a number, got {raw!r}") from exc
    return min(max(value, lo), hi)


def _int(name: str, default: int, lo: int, hi: int) -> int:
    raw = _raw(name, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{_PREFIX}{name} must be an integer, got {raw!r}") from exc
    return min(max(value, lo), hi)


def _bool(name: str, default: bool) -> bool:
    raw = _raw(name, "").lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"{_PREFIX}{name} must be a boolean, got {raw!r}")
