"""async-digest: Consolidate async discussion links into a structured digest."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("async-digest")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__"]
