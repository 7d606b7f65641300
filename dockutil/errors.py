"""Exception hierarchy for Docker daemon access.

Every error carries the failing ``operation`` and its ``target`` (container
ID, image reference, or empty) so callers can log them without re-deriving
context.
"""

from __future__ import annotations


class DockUtilError(Exception):
    """Base class for all dockutil errors."""

    def __init__(self, message: str, operation: str = "", target: str = "") -> None:
        super().__init__(message)
        self.operation = operation
        self.target = target


class InitError(DockUtilError):
    """Raised when the Docker connection is not established.

    ``retry_in_s`` is the number of seconds until the init gate permits the
    next bootstrap attempt, or ``None`` when it never will.
    """

    def __init__(self, message: str, cause: BaseException | None = None, retry_in_s: float | None = None) -> None:
        super().__init__(message, operation="init")
        self.cause = cause
        self.retry_in_s = retry_in_s


class QueryTimeoutError(DockUtilError):
    """Raised when a daemon call exceeds the query timeout."""

    def __init__(self, operation: str, target: str, timeout_s: float) -> None:
        suffix = f" for {target}" if target else ""
        super().__init__(f"{operation}{suffix} timed out after {timeout_s:g}s", operation, target)
        self.timeout_s = timeout_s


class NotFoundError(DockUtilError):
    """Raised when the daemon reports the queried entity as absent."""


class ContainerNotFoundError(NotFoundError):
    """Raised when an inspected container does not exist."""

    def __init__(self, container_id: str, operation: str = "inspect_container") -> None:
        super().__init__(f"docker container {container_id} not found", operation, container_id)
        self.container_id = container_id


class InvalidInspectDataError(DockUtilError):
    """Raised when an inspect payload lacks its mandatory base section."""


class TransportError(DockUtilError):
    """Raised for any other daemon or transport failure.

    ``status`` is the HTTP status reported by the daemon, when there is one.
    """

    def __init__(self, message: str, operation: str = "", target: str = "", status: int | None = None) -> None:
        super().__init__(message, operation, target)
        self.status = status


class ContainerIDNotFoundError(DockUtilError):
    """Raised when the agent cannot discover its own container ID."""
