"""Core package for tracing call graphs of compiled programs with GDB."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("gdb-callgraph")
except PackageNotFoundError:  # pragma: no cover - package metadata absent in dev mode
    __version__ = "0.0.0"

__all__ = ["__version__"]
