"""dockutil - resilient Docker daemon access layer for telemetry agents."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dockutil")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
