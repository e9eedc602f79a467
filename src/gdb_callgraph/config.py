"""Configuration primitives for the project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from gdb_callgraph.errors import ConfigurationError

GDB_ENV_VAR = "GDB_CALLGRAPH_GDB"
DEFAULT_GDB = "gdb"


@dataclass(slots=True)
class TraceConfig:
    """Settings for one GDB session."""

    gdb_path: Path | str = DEFAULT_GDB
    gdb_args: tuple[str, ...] = ("-q",)
    backtrace_depth: int = 2
    allow_nonzero_exit: bool = False
    timeout: float | None = None
    program_args: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.backtrace_depth < 1:
            raise ConfigurationError(f"backtrace depth must be positive, got {self.backtrace_depth}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")
        self.gdb_args = tuple(self.gdb_args)
        self.program_args = tuple(self.program_args)

    def command(self, binary: Path) -> list[str]:
        """Command line used to start GDB on ``binary``."""

        return [str(self.gdb_path), *self.gdb_args, str(binary)]

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        program_args: Iterable[str] = (),
        **overrides,
    ) -> "TraceConfig":
        """Factory helper that honours ``GDB_CALLGRAPH_GDB`` for the debugger path."""

        env = os.environ if environ is None else environ
        if "gdb_path" not in overrides:
            overrides["gdb_path"] = env.get(GDB_ENV_VAR) or DEFAULT_GDB
        return cls(program_args=tuple(program_args), **overrides)
