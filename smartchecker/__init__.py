"""Smart Checker: hybrid remote/local diagnostics for source-code buffers."""

from ._version import __version__

__all__ = ["__version__"]
