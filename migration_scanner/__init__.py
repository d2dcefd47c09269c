"""Static scanner for .NET to Linux container migration risks."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("migration-scanner")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0-dev"

__all__ = ["__version__"]
