"""Helper routines to trace call graphs by scripting GDB sessions."""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from gdb_callgraph.analysis.dot import write_call_graph
from gdb_callgraph.config import TraceConfig
from gdb_callgraph.errors import CallGraphError, ParseError
from gdb_callgraph.io.gdb_interface import run_gdb
from gdb_callgraph.parsing.functions import FunctionSite, parse_functions
from gdb_callgraph.parsing.transcript import Anomaly, Edge, parse_edges

LOGGER = logging.getLogger(__name__)

# Keep GDB output unpaginated and unwrapped so it stays line oriented.
SESSION_SETUP = (
    "set width 0",
    "set height 0",
    "set verbose off",
)


@dataclass(slots=True)
class TraceResult:
    binary: Path
    functions: List[FunctionSite]
    edges: List[Edge]
    anomalies: List[Anomaly] = field(default_factory=list)
    transcript: str = ""
    stderr: str = ""
    returncode: int = 0
    output: Optional[Path] = None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def build_function_listing_script() -> str:
    """GDB script printing every function with a known source location."""

    return "\n".join([*SESSION_SETUP, "info functions", ""])


def build_trace_script(
    functions: Sequence[FunctionSite],
    *,
    backtrace_depth: int = 2,
    program_args: Sequence[str] = (),
) -> str:
    """
    GDB script tracing every call to ``functions``.

    Breakpoints are set by ``file:line`` and numbered in order starting at 1; each one prints
    a short backtrace and resumes, so the session runs unattended until the program exits.
    """

    lines = list(SESSION_SETUP)
    for site in functions:
        lines.append(f"break {site.file}:{site.line}")
    for number in range(1, len(functions) + 1):
        lines.extend(
            [
                f"commands {number}",
                f"backtrace {backtrace_depth}",
                "continue",
                "end",
            ]
        )
    if program_args:
        lines.append(f"run {shlex.join(program_args)}")
    else:
        lines.append("run")
    lines.append("")
    return "\n".join(lines)


def list_functions(binary: Path, config: TraceConfig | None = None) -> List[FunctionSite]:
    """Ask GDB for the functions of ``binary`` that carry debug info."""

    completed = run_gdb(binary, build_function_listing_script(), config)
    try:
        functions = parse_functions(completed.stdout)
    except ParseError as exc:
        raise ParseError(f"unable to read function listing of {binary}") from exc
    LOGGER.info("Found %d functions with debug info in %s", len(functions), binary)
    return functions


def trace(
    binary: Path,
    functions: Sequence[FunctionSite],
    config: TraceConfig | None = None,
) -> TraceResult:
    """Run ``binary`` under GDB with a breakpoint on each of ``functions`` and parse the hits."""

    config = config or TraceConfig()
    script = build_trace_script(
        functions,
        backtrace_depth=config.backtrace_depth,
        program_args=config.program_args,
    )
    completed = run_gdb(binary, script, config)
    parsed = parse_edges(completed.stdout, functions)
    return TraceResult(
        binary=binary,
        functions=list(functions),
        edges=parsed.edges,
        anomalies=parsed.anomalies,
        transcript=completed.stdout,
        stderr=completed.stderr,
        returncode=completed.returncode,
    )


def generate_call_graph(
    binary: Path,
    output: Path | None = None,
    config: TraceConfig | None = None,
) -> TraceResult:
    """
    Trace ``binary`` and write its call graph in Graphviz DOT format.

    The output is written to ``output``, or standard output when omitted. Nothing is
    written when listing or tracing fails.
    """

    config = config or TraceConfig()
    try:
        functions = list_functions(binary, config)
        result = trace(binary, functions, config)
    except CallGraphError as exc:
        raise CallGraphError(f"unable to generate call graph of {binary}") from exc

    try:
        write_call_graph(result.edges, output)
    except OSError as exc:
        raise CallGraphError(f"unable to write call graph of {binary} to {output}") from exc
    result.output = output
    return result


def output_path_for(output: Path, binary: Path) -> Path:
    """Per-binary variant of ``output`` used when several binaries share one output option."""

    suffix = output.suffix or ".dot"
    return output.with_name(f"{output.stem}.{binary.name}{suffix}")


__all__ = [
    "TraceResult",
    "build_function_listing_script",
    "build_trace_script",
    "generate_call_graph",
    "list_functions",
    "output_path_for",
    "trace",
]
