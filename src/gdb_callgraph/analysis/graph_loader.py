"""Utilities for converting traced edges into networkx graphs and exporting them."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Iterable

import networkx as nx

from gdb_callgraph.parsing.frames import StackFrame
from gdb_callgraph.parsing.transcript import Edge


def _add_function(graph: nx.MultiDiGraph, frame: StackFrame) -> str:
    node = frame.function_name
    if node not in graph:
        graph.add_node(node, name=node, file=frame.source_file, line=frame.source_line, hits=0)
    elif graph.nodes[node].get("file") is None and frame.source_file is not None:
        graph.nodes[node]["file"] = frame.source_file
        graph.nodes[node]["line"] = frame.source_line
    return node


def to_networkx(edges: Iterable[Edge], *, program: str | None = None) -> nx.MultiDiGraph:
    """
    Build a directed multigraph from traced edges.

    Nodes are keyed by function name. Every observed call becomes its own edge, so repeated
    calls (loops, recursion) show up as parallel edges.
    """

    graph = nx.MultiDiGraph(program=program)
    for edge in edges:
        callee = _add_function(graph, edge.callee)
        graph.nodes[callee]["hits"] += 1
        if edge.caller is None:
            graph.nodes[callee]["entry"] = True
            continue
        caller = _add_function(graph, edge.caller)
        graph.add_edge(
            caller,
            callee,
            arguments=edge.callee.arguments,
            call_file=edge.caller.source_file,
            call_line=edge.caller.source_line,
            source_line=edge.callee_source_line,
        )

    graph.graph["node_count"] = graph.number_of_nodes()
    graph.graph["edge_count"] = graph.number_of_edges()
    return graph


def call_counts(graph: nx.MultiDiGraph) -> Counter:
    """Number of observed calls per (caller, callee) pair."""

    return Counter((source, target) for source, target in graph.edges())


def export_generic_graph(graph: nx.MultiDiGraph, destination: Path) -> None:
    """Persist a traced graph to JSON."""

    destination = Path(destination)
    counts = call_counts(graph)
    payload = {
        "program": graph.graph.get("program") or destination.stem,
        "node_count": graph.number_of_nodes(),
        "edge_count": graph.number_of_edges(),
        "nodes": [],
        "edges": [],
    }

    for node, data in graph.nodes(data=True):
        payload["nodes"].append({"id": node, **data})

    for (source, target), count in counts.items():
        payload["edges"].append({"source": source, "target": target, "calls": count})

    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


def _sanitize_for_graphml(graph: nx.MultiDiGraph) -> nx.MultiDiGraph:
    """Return a copy of the graph without attributes GraphML cannot store."""

    def sanitize(mapping):
        for key in list(mapping.keys()):
            if mapping[key] is None:
                del mapping[key]

    copy = graph.copy()
    sanitize(copy.graph)
    for _, data in copy.nodes(data=True):
        sanitize(data)
    for _, _, data in copy.edges(data=True):
        sanitize(data)
    return copy


def export_graphml(graph: nx.MultiDiGraph, destination: Path) -> None:
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    nx.write_graphml(_sanitize_for_graphml(graph), destination)


__all__ = ["call_counts", "export_generic_graph", "export_graphml", "to_networkx"]
