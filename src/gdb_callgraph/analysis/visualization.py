"""Visualization helpers for traced call graphs."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

import matplotlib.pyplot as plt
import networkx as nx


def _file_colors(graph: nx.MultiDiGraph) -> dict[str, tuple]:
    files = sorted({data.get("file") or "unknown" for _, data in graph.nodes(data=True)})
    palette = plt.get_cmap("tab20")
    colors = {}
    for idx, name in enumerate(files):
        colors[name] = palette(idx % palette.N)
    return colors


def plot_call_graph(
    graph: nx.MultiDiGraph,
    output_path: Path,
    *,
    layout: str = "spring",
    show_labels: bool = True,
    title: str | None = None,
) -> Path:
    """
    Render a traced call graph to ``output_path`` using matplotlib.

    Nodes are colour-coded by source file and sized by how often they were hit.
    """

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if graph.number_of_nodes() == 0:
        raise ValueError("Graph contains no nodes to visualize.")

    colors = _file_colors(graph)
    node_colours = [colors[data.get("file") or "unknown"] for _, data in graph.nodes(data=True)]
    node_sizes = [200 + int(data.get("hits", 0)) * 20 for _, data in graph.nodes(data=True)]

    # Parallel edges are collapsed for drawing.
    simple = nx.DiGraph(graph)
    if layout == "kamada-kawai":
        positions = nx.kamada_kawai_layout(simple)
    else:
        positions = nx.spring_layout(simple, seed=42)

    plt.figure(figsize=(12, 12))
    nx.draw_networkx_edges(simple, positions, alpha=0.5, width=0.8, arrows=True)
    nx.draw_networkx_nodes(simple, positions, node_color=node_colours, node_size=node_sizes, alpha=0.9)
    if show_labels:
        nx.draw_networkx_labels(simple, positions, font_size=8)

    if title is None:
        summary = Counter(data.get("file") or "unknown" for _, data in graph.nodes(data=True))
        title = ", ".join(f"{name}: {count} functions" for name, count in summary.items())

    plt.title(title)
    plt.axis("off")
    plt.tight_layout()
    plt.savefig(output_path, dpi=200)
    plt.close()
    return output_path


__all__ = ["plot_call_graph"]
