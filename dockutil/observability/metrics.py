"""Prometheus metrics for dockutil."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# Daemon call metrics
daemon_requests_total = Counter(
    "dockutil_daemon_requests_total",
    "Total Docker daemon requests",
    ["operation", "outcome"],
)

daemon_request_duration_seconds = Histogram(
    "dockutil_daemon_request_duration_seconds",
    "Docker daemon request duration in seconds",
    ["operation"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Init gate metrics
init_attempts_total = Counter(
    "dockutil_init_attempts_total",
    "Total Docker connection bootstrap attempts",
    ["outcome"],
)

init_state = Gauge(
    "dockutil_init_state",
    "Docker connection init gate state",
    ["state"],
)

# Inspect cache metrics
inspect_cache_requests_total = Counter(
    "dockutil_inspect_cache_requests_total",
    "Total container inspect cache lookups",
    ["result"],
)

inspect_cache_write_errors_total = Counter(
    "dockutil_inspect_cache_write_errors_total",
    "Total failed container inspect cache writes",
)

# Image resolution metrics
image_resolutions_total = Counter(
    "dockutil_image_resolutions_total",
    "Total image name resolutions",
    ["result"],
)

image_resolution_cache_size = Gauge(
    "dockutil_image_resolution_cache_size",
    "Number of memoized image name resolutions",
)
