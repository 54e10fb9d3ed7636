"""Verify that module manifests are already normalized."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tidy-check")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

__all__ = ["__version__"]
