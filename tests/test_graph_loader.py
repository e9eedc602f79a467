"""Tests for DOT rendering and networkx conversion of traced edges."""

from __future__ import annotations

import json
from pathlib import Path

import networkx as nx

from gdb_callgraph.analysis.dot import call_graph_dot, write_call_graph
from gdb_callgraph.analysis.graph_loader import call_counts, export_generic_graph, export_graphml, to_networkx
from gdb_callgraph.parsing.frames import StackFrame
from gdb_callgraph.parsing.transcript import Edge, parse_edges


def _edge(caller: str | None, callee: str, args: str = "n=23") -> Edge:
    caller_frame = StackFrame(1, caller, "", "test.c", 11) if caller else None
    return Edge(caller=caller_frame, callee=StackFrame(0, callee, args, "test.c", 19))


def test_call_graph_dot_three_calls() -> None:
    edges = [_edge("main", "foo"), _edge("foo", "bar"), _edge("bar", "baz")]

    dot = call_graph_dot(edges)

    assert dot.splitlines() == [
        "digraph {",
        '\t"main" -> "foo" [label="(n=23)"]',
        '\t"foo" -> "bar" [label="(n=23)"]',
        '\t"bar" -> "baz" [label="(n=23)"]',
        "}",
    ]
    statements = dot.splitlines()[1:-1]
    assert sum("->" in line for line in statements) == 3
    assert sum("->" not in line for line in statements) == 0


def test_call_graph_dot_unknown_caller_and_empty_arguments() -> None:
    dot = call_graph_dot([_edge(None, "main"), _edge("main", "init", args="")])

    assert dot.splitlines()[1:-1] == ['\t"main"', '\t"main" -> "init"']


def test_call_graph_dot_escapes_quotes() -> None:
    dot = call_graph_dot([_edge("main", "greet", args='name=0x4006f4 "world"')])

    assert '[label="(name=0x4006f4 \\"world\\")"]' in dot


def test_write_call_graph_to_stdout(capsys) -> None:
    write_call_graph([_edge("main", "foo")])

    assert capsys.readouterr().out == 'digraph {\n\t"main" -> "foo" [label="(n=23)"]\n}\n'


def test_to_networkx_keeps_repeated_calls(trace_transcript: str) -> None:
    edges = parse_edges(trace_transcript).edges + [_edge("main", "foo")]

    graph = to_networkx(edges, program="test")

    assert isinstance(graph, nx.MultiDiGraph)
    assert set(graph.nodes) == {"main", "foo", "bar", "baz"}
    assert graph.number_of_edges() == 4
    assert call_counts(graph)[("main", "foo")] == 2
    assert graph.nodes["main"]["entry"] is True
    assert graph.nodes["foo"]["hits"] == 2
    assert graph.nodes["baz"]["file"] == "test.c"


def test_export_generic_graph(trace_transcript: str, tmp_path: Path) -> None:
    graph = to_networkx(parse_edges(trace_transcript).edges, program="test")
    destination = tmp_path / "out" / "test.json"

    export_generic_graph(graph, destination)

    with destination.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)

    assert payload["program"] == "test"
    assert payload["node_count"] == 4
    assert payload["edge_count"] == 3
    assert {"source": "bar", "target": "baz", "calls": 1} in payload["edges"]


def test_export_graphml(trace_transcript: str, tmp_path: Path) -> None:
    graph = to_networkx(parse_edges(trace_transcript).edges)
    destination = tmp_path / "test.graphml"

    export_graphml(graph, destination)

    loaded = nx.read_graphml(destination)
    assert loaded.number_of_nodes() == 4
    assert loaded.number_of_edges() == 3


def test_plot_call_graph(trace_transcript: str, tmp_path: Path) -> None:
    from gdb_callgraph.analysis.visualization import plot_call_graph

    graph = to_networkx(parse_edges(trace_transcript).edges, program="test")

    png_path = plot_call_graph(graph, tmp_path / "figures" / "test.png", title="test")

    assert png_path.exists()
    assert png_path.stat().st_size > 0


def test_three_hit_transcript_renders_three_calls() -> None:
    transcript = "\n".join(
        [
            "Reading symbols from ./test...",
            "(gdb) Starting program: /tmp/test",
            "",
            "Breakpoint 2, foo (n=23) at test.c:19",
            "19\t  bar(n);",
            "#0  foo (n=23) at test.c:19",
            "#1  0x0000555555555152 in main (argc=1, argv=0x7fffffffe6a8) at test.c:11",
            "",
            "Breakpoint 3, bar (n=23) at test.c:25",
            "25\t  baz(n);",
            "#0  bar (n=23) at test.c:25",
            "#1  0x0000555555555171 in foo (n=23) at test.c:19",
            "",
            "Breakpoint 4, baz (n=23) at test.c:31",
            "31\t  return;",
            "#0  baz (n=23) at test.c:31",
            "#1  0x0000555555555189 in bar (n=23) at test.c:25",
            "[Inferior 1 (process 4242) exited normally]",
        ]
    )

    edges = parse_edges(transcript).edges
    statements = call_graph_dot(edges).splitlines()[1:-1]

    assert [(edge.caller.function_name, edge.callee.function_name) for edge in edges] == [
        ("main", "foo"),
        ("foo", "bar"),
        ("bar", "baz"),
    ]
    assert statements == [
        '\t"main" -> "foo" [label="(n=23)"]',
        '\t"foo" -> "bar" [label="(n=23)"]',
        '\t"bar" -> "baz" [label="(n=23)"]',
    ]
    assert sum("->" not in line for line in statements) == 0
