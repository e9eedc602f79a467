"""Command line entry points for the project."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from gdb_callgraph import __version__
from gdb_callgraph.analysis.dot import write_call_graph
from gdb_callgraph.analysis.graph_loader import export_generic_graph, export_graphml, to_networkx
from gdb_callgraph.analysis.visualization import plot_call_graph
from gdb_callgraph.config import TraceConfig
from gdb_callgraph.errors import CallGraphError, ConfigurationError
from gdb_callgraph.parsing.transcript import parse_edges
from gdb_callgraph.pipelines.gdb_trace import TraceResult, generate_call_graph, list_functions, output_path_for


def _resolve_binaries(inputs: List[Path]) -> List[Path]:
    resolved: List[Path] = []
    for item in inputs:
        candidate = item.expanduser().resolve()
        if not candidate.exists():
            raise typer.BadParameter(f"Binary not found: {candidate}")
        resolved.append(candidate)
    return resolved


def _build_config(gdb: Optional[Path], allow_nonzero_exit: bool, timeout: Optional[float], program_args: List[str]) -> TraceConfig:
    overrides = {"allow_nonzero_exit": allow_nonzero_exit, "timeout": timeout}
    if gdb is not None:
        overrides["gdb_path"] = gdb
    try:
        return TraceConfig.from_env(program_args=program_args, **overrides)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _report_failure(exc: BaseException) -> None:
    """Print an error with every underlying cause, outermost first."""

    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    cause = exc.__cause__
    depth = 1
    while cause is not None:
        typer.secho(f"{'  ' * depth}caused by: {cause}", fg=typer.colors.RED, err=True)
        cause = cause.__cause__
        depth += 1


def _report_anomalies(result: TraceResult) -> None:
    if not result.anomalies:
        return
    typer.secho(f"  skipped breakpoint hits: {len(result.anomalies)}", fg=typer.colors.YELLOW, err=True)
    for anomaly in result.anomalies[:10]:
        typer.echo(f"    - #{anomaly.segment_index + 1}: {anomaly.message}", err=True)
    if len(result.anomalies) > 10:
        typer.echo(f"    ... ({len(result.anomalies) - 10} more)", err=True)


app = typer.Typer(help="Generate call graphs by tracing executables with GDB.")


def _version_callback(display_version: bool) -> None:
    if display_version:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    display_version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every traced edge."),
) -> None:
    """Configure logging for the selected command."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("functions")
def functions(
    binary: Path = typer.Argument(..., help="Executable with debug info."),
    gdb: Optional[Path] = typer.Option(None, "--gdb", help="GDB executable (defaults to $GDB_CALLGRAPH_GDB or gdb)."),
) -> None:
    """List the functions GDB knows source locations for."""

    (resolved,) = _resolve_binaries([binary])
    config = _build_config(gdb, False, None, [])
    try:
        sites = list_functions(resolved, config)
    except CallGraphError as exc:
        _report_failure(exc)
        raise typer.Exit(code=1)

    for site in sites:
        typer.echo(f"{site.location}\t{site.signature}")


@app.command("trace")
def trace(
    binary: List[Path] = typer.Argument(..., help="Executables to trace, processed in order."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="DOT output path (defaults to standard output)."),
    gdb: Optional[Path] = typer.Option(None, "--gdb", help="GDB executable (defaults to $GDB_CALLGRAPH_GDB or gdb)."),
    allow_nonzero_exit: bool = typer.Option(
        False,
        help="Parse the transcript even when GDB exits with a non-zero status.",
    ),
    timeout: Optional[float] = typer.Option(None, help="Abort a GDB session after this many seconds."),
    program_arg: List[str] = typer.Option([], "--arg", "-a", help="Argument passed to the traced program (repeatable)."),
    graphml: Optional[Path] = typer.Option(None, help="Also write the call graph as GraphML."),
    json_output: Optional[Path] = typer.Option(None, "--json", help="Also write the call graph as JSON with per-edge call counts."),
    visualize: Optional[Path] = typer.Option(None, help="Also render the call graph to a PNG file."),
) -> None:
    """Trace executables under GDB and write their call graphs in Graphviz DOT format."""

    binaries = _resolve_binaries(binary)
    config = _build_config(gdb, allow_nonzero_exit, timeout, program_arg)
    output = output.expanduser().resolve() if output else None

    for path in binaries:
        destination = output
        if output is not None and len(binaries) > 1:
            destination = output_path_for(output, path)
        try:
            result = generate_call_graph(path, destination, config)
        except CallGraphError as exc:
            _report_failure(exc)
            raise typer.Exit(code=1)

        if destination is not None:
            typer.echo(f"{path} -> {destination} [{len(result.edges)} edges]")
        _report_anomalies(result)

        if not (graphml or json_output or visualize):
            continue
        graph = to_networkx(result.edges, program=path.name)
        try:
            if graphml:
                target = output_path_for(graphml, path) if len(binaries) > 1 else graphml
                export_graphml(graph, target.expanduser().resolve())
                typer.echo(f"GraphML written to {target}")
            if json_output:
                target = output_path_for(json_output, path) if len(binaries) > 1 else json_output
                export_generic_graph(graph, target.expanduser().resolve())
                typer.echo(f"JSON written to {target}")
            if visualize and graph.number_of_nodes():
                target = output_path_for(visualize, path) if len(binaries) > 1 else visualize
                png_path = plot_call_graph(graph, target.expanduser().resolve(), title=path.name)
                typer.echo(f"Visualization saved to {png_path}")
        except OSError as exc:
            failure = CallGraphError(f"unable to export call graph of {path}")
            failure.__cause__ = exc
            _report_failure(failure)
            raise typer.Exit(code=1)


@app.command("parse")
def parse(
    transcript: Path = typer.Argument(..., help="Saved output of a traced GDB session."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="DOT output path (defaults to standard output)."),
) -> None:
    """Build a call graph from a previously captured GDB transcript."""

    transcript = transcript.expanduser().resolve()
    if not transcript.exists():
        raise typer.BadParameter(f"Transcript not found: {transcript}")

    result = parse_edges(transcript.read_text(encoding="utf-8", errors="replace"))
    destination = output.expanduser().resolve() if output else None
    try:
        write_call_graph(result.edges, destination)
    except OSError as exc:
        failure = CallGraphError(f"unable to write call graph of {transcript} to {destination}")
        failure.__cause__ = exc
        _report_failure(failure)
        raise typer.Exit(code=1)
    if output is not None:
        typer.echo(f"{transcript} -> {output} [{len(result.edges)} edges]")
    if result.anomalies:
        typer.secho(f"Skipped breakpoint hits: {len(result.anomalies)}", fg=typer.colors.YELLOW, err=True)


def run() -> None:
    """Entry point used by ``python -m gdb_callgraph.cli``."""

    app()


if __name__ == "__main__":
    run()
