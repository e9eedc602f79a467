"""Graphviz DOT rendering of traced call graphs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable

from gdb_callgraph.parsing.transcript import Edge


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def call_graph_dot(edges: Iterable[Edge]) -> str:
    """
    Render ``edges`` as a DOT digraph.

    Edges with a known caller become ``"caller" -> "callee"`` statements, labelled with the
    callee arguments when there are any. A callee without a caller is declared as a node.
    Repeated edges are kept; Graphviz draws each of them.
    """

    lines = ["digraph {"]
    for edge in edges:
        callee = _quote(edge.callee.function_name)
        if edge.caller is None:
            lines.append(f"\t{callee}")
            continue
        caller = _quote(edge.caller.function_name)
        if edge.callee.arguments:
            label = _quote(f"({edge.callee.arguments})")
            lines.append(f"\t{caller} -> {callee} [label={label}]")
        else:
            lines.append(f"\t{caller} -> {callee}")
    lines.append("}")
    return "\n".join(lines)


def write_call_graph(edges: Iterable[Edge], output: Path | None = None) -> None:
    """Write the DOT graph to ``output``, or standard output when no path is given."""

    text = call_graph_dot(edges) + "\n"
    if output is None:
        sys.stdout.write(text)
        return
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as handle:
        handle.write(text)


__all__ = ["call_graph_dot", "write_call_graph"]
