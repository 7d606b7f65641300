"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DockerConfig:
    """Docker daemon access settings, fixed for the process lifetime."""

    query_timeout_s: float = 5.0
    cache_duration_s: float = 10.0
    inspect_cache_size: int = 4096
    collect_network: bool = True


@dataclass(frozen=True)
class RetryConfig:
    """Bootstrap retry settings for the init gate.

    ``cooldown_s`` of ``None`` makes exhaustion permanent.
    """

    max_attempts: int = 5
    initial_delay_s: float = 1.0
    max_delay_s: float = 30.0
    cooldown_s: float | None = 300.0


@dataclass(frozen=True)
class LogConfig:
    level: str = "info"


@dataclass(frozen=True)
class DockUtilConfig:
    """Top-level configuration loaded from DOCKUTIL_* environment variables."""

    docker: DockerConfig = field(default_factory=DockerConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    log: LogConfig = field(default_factory=LogConfig)
