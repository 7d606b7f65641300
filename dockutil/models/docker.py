"""Docker inspection and storage data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from dockutil.errors import InvalidInspectDataError

# Fields of the inspect payload that every consumer relies on.
_BASE_FIELDS: tuple[str, ...] = ("Id", "Image", "State")


class InitState(StrEnum):
    """Connection bootstrap state of the init gate."""

    UNINITIALIZED = "uninitialized"
    BOOTSTRAPPING = "bootstrapping"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ContainerInspect:
    """Full ``docker inspect`` record for one container.

    Construct through :meth:`from_raw`, which rejects payloads missing the
    base section so accessors never fail on absent keys.
    """

    raw: dict[str, Any]

    @classmethod
    def from_raw(cls, raw: Any, container_id: str = "") -> ContainerInspect:
        """Validate a raw inspect payload and wrap it.

        Raises:
            InvalidInspectDataError: if ``raw`` is not a mapping or lacks any
                base field, or if ``State`` is not a mapping.
        """
        if not isinstance(raw, dict):
            raise InvalidInspectDataError("invalid inspect data: not a mapping", "inspect_container", container_id)
        missing = [name for name in _BASE_FIELDS if raw.get(name) is None]
        if missing:
            raise InvalidInspectDataError(
                f"invalid inspect data: missing {', '.join(missing)}", "inspect_container", container_id
            )
        if not isinstance(raw["State"], dict):
            raise InvalidInspectDataError("invalid inspect data: State is not a mapping", "inspect_container", container_id)
        return cls(raw=raw)

    @property
    def id(self) -> str:
        return str(self.raw["Id"])

    @property
    def name(self) -> str:
        """Container name without the leading slash Docker prepends."""
        return str(self.raw.get("Name") or "").lstrip("/")

    @property
    def image(self) -> str:
        """Resolved image ID (usually ``sha256:...``)."""
        return str(self.raw["Image"])

    @property
    def config(self) -> dict[str, Any]:
        config = self.raw.get("Config")
        return config if isinstance(config, dict) else {}

    @property
    def config_image(self) -> str:
        """Image name as the container was configured with, or empty."""
        return str(self.config.get("Image") or "")

    @property
    def labels(self) -> dict[str, str]:
        labels = self.config.get("Labels")
        if not isinstance(labels, dict):
            return {}
        return {str(k): str(v) for k, v in labels.items()}

    @property
    def state(self) -> dict[str, Any]:
        return dict(self.raw["State"])

    @property
    def running(self) -> bool:
        return bool(self.raw["State"].get("Running", False))

    @property
    def size_rw(self) -> int | None:
        """Writable layer size; only present when inspected with size."""
        value = self.raw.get("SizeRw")
        return int(value) if value is not None else None

    @property
    def size_root_fs(self) -> int | None:
        value = self.raw.get("SizeRootFs")
        return int(value) if value is not None else None


@dataclass(frozen=True)
class StorageStats:
    """Space usage of one storage pool reported by the daemon (bytes)."""

    name: str
    free: float | None = None
    used: float | None = None
    total: float | None = None

    def percent_used(self) -> float | None:
        """Return used space as a percentage, or None if it cannot be computed.

        Uses ``used / (used + free)`` when ``free`` is known, else
        ``used / total``.
        """
        if self.used is None:
            return None
        if self.free is not None and self.used + self.free > 0:
            return 100.0 * self.used / (self.used + self.free)
        if self.total:
            return 100.0 * self.used / self.total
        return None
