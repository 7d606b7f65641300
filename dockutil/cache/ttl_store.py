"""Thread-safe key/value store with per-entry expiry."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachetools import TLRUCache

_DEFAULT_MAXSIZE: int = 4096


@dataclass(frozen=True, slots=True)
class _Entry:
    value: Any
    ttl_s: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_s


class TTLStore:
    """Generic TTL cache shared by components that memoize daemon answers.

    Each ``set`` carries its own TTL; expired entries read as absent. When
    full, expired entries go first, then the least recently used one.
    """

    def __init__(self, maxsize: int = _DEFAULT_MAXSIZE, timer: Callable[[], float] = time.monotonic) -> None:
        self._lock = threading.Lock()
        self._cache: TLRUCache[str, _Entry] = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)

    def get(self, key: str) -> Any | None:
        """Return the live value for ``key``, or None."""
        with self._lock:
            entry = self._cache.get(key)
        return None if entry is None else entry.value

    def set(self, key: str, value: Any, ttl_s: float) -> None:
        """Store ``value`` under ``key`` for ``ttl_s`` seconds from now."""
        if ttl_s <= 0:
            raise ValueError(f"ttl_s must be positive, got {ttl_s}")
        with self._lock:
            self._cache[key] = _Entry(value=value, ttl_s=ttl_s)

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``; return how many were removed."""
        with self._lock:
            doomed = [key for key in self._cache if key.startswith(prefix)]
            for key in doomed:
                self._cache.pop(key, None)
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)
