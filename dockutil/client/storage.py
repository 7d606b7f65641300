"""Map ``docker info`` driver status rows to storage statistics.

Devicemapper-style drivers report rows such as::

    ["Data Space Used", "1.2 GB"]
    ["Data Space Available", "10.3 GB"]
    ["Metadata Space Total", "2.1 GB"]

Drivers without such rows (overlay2, btrfs, ...) yield no statistics.
"""

from __future__ import annotations

import re
from typing import Any

from dockutil.models.docker import StorageStats
from dockutil.observability.logging import get_logger

_log = get_logger("docker.storage")

# Docker formats sizes with decimal (SI) units.
_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s?([kKmMgGtTpP])?[iI]?[bB]?$")
_UNIT_MULTIPLIERS: dict[str, float] = {
    "": 1.0,
    "k": 1e3,
    "m": 1e6,
    "g": 1e9,
    "t": 1e12,
    "p": 1e15,
}

_STAT_FIELDS: dict[str, str] = {
    "used": "used",
    "total": "total",
    "available": "free",
}


def from_human_size(size: str) -> float:
    """Parse a human readable size like ``"1.2 GB"`` into bytes.

    Raises:
        ValueError: if ``size`` is not a recognised size string.
    """
    match = _SIZE_RE.match(size.strip())
    if match is None:
        raise ValueError(f"invalid size: {size!r}")
    number, unit = match.groups()
    return float(number) * _UNIT_MULTIPLIERS[(unit or "").lower()]


def parse_storage_stats_from_info(info: dict[str, Any]) -> list[StorageStats]:
    """Extract per-pool storage statistics from a ``docker info`` payload."""
    pools: dict[str, dict[str, float]] = {}
    for row in info.get("DriverStatus") or []:
        if not isinstance(row, (list, tuple)) or len(row) != 2:
            continue
        key, value = str(row[0]).lower(), str(row[1])
        fields = key.split()
        if len(fields) != 3 or fields[1] != "space" or fields[2] not in _STAT_FIELDS:
            continue
        try:
            size = from_human_size(value)
        except ValueError:
            _log.debug("storage_size_unparsable", key=key, value=value)
            continue
        pools.setdefault(fields[0], {})[_STAT_FIELDS[fields[2]]] = size

    return [StorageStats(name=name, **values) for name, values in sorted(pools.items())]


def build_docker_filter(key: str, *values: str) -> dict[str, list[str]]:
    """Return a daemon query filter matching ``key`` against any of ``values``."""
    return {key: list(values)}
