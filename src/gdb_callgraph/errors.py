"""Exception hierarchy shared by the tracing pipeline."""

from __future__ import annotations


class CallGraphError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(CallGraphError, ValueError):
    """Invalid trace settings or command line values."""


class TraceError(CallGraphError):
    """The GDB subprocess could not be launched or exited abnormally."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        message = super().__str__()
        stderr = self.stderr.strip()
        if stderr:
            return f"{message}\n{stderr}"
        return message


# Alias for failures of the GDB subprocess.
ProcessError = TraceError


class ParseError(CallGraphError, ValueError):
    """GDB output does not have the shape the parsers expect."""

    def __init__(self, message: str, *, line: str | None = None) -> None:
        super().__init__(message)
        self.line = line


__all__ = ["CallGraphError", "ConfigurationError", "ParseError", "ProcessError", "TraceError"]
