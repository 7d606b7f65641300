"""Discovery of the container the agent itself runs in."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol

from dockutil.errors import ContainerIDNotFoundError

_CONTAINER_ID_RE = re.compile(r"(?<![0-9a-f])([0-9a-f]{64})(?![0-9a-f])")


class AgentContainerIDProvider(Protocol):
    def get_agent_container_id(self) -> str: ...


class StaticContainerIDProvider:
    """Provider returning a fixed ID, e.g. one injected through the environment."""

    def __init__(self, container_id: str) -> None:
        self._container_id = container_id

    def get_agent_container_id(self) -> str:
        if not self._container_id:
            raise ContainerIDNotFoundError("no container ID configured", "get_agent_container_id")
        return self._container_id


class CgroupContainerIDProvider:
    """Finds the agent's container ID in its cgroup and mount tables.

    ``/proc/self/cgroup`` carries the ID on cgroup v1 hosts; on cgroup v2 it
    is usually only visible through container-runtime mounts listed in
    ``/proc/self/mountinfo``.
    """

    def __init__(
        self,
        cgroup_path: Path = Path("/proc/self/cgroup"),
        mountinfo_path: Path = Path("/proc/self/mountinfo"),
    ) -> None:
        self._cgroup_path = cgroup_path
        self._mountinfo_path = mountinfo_path

    def get_agent_container_id(self) -> str:
        """Return the 64-hex container ID.

        Raises:
            ContainerIDNotFoundError: neither file holds a container ID.
        """
        for path in (self._cgroup_path, self._mountinfo_path):
            container_id = _scan(path)
            if container_id:
                return container_id
        raise ContainerIDNotFoundError(
            f"no container ID found in {self._cgroup_path} or {self._mountinfo_path}",
            "get_agent_container_id",
        )


def _scan(path: Path) -> str:
    try:
        text = path.read_text()
    except OSError:
        return ""
    for line in text.splitlines():
        if "/containers/" in line or "docker" in line or "cri-containerd" in line:
            match = _CONTAINER_ID_RE.search(line)
            if match:
                return match.group(1)
    return ""
