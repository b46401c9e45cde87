"""contrib-analyzer: Multi-project contribution statistics for event participants."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("contrib-analyzer")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__"]
