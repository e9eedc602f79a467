"""Recover call graph edges from a scripted GDB session transcript."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from gdb_callgraph.errors import ParseError
from gdb_callgraph.parsing.frames import StackFrame, parse_stack_frame
from gdb_callgraph.parsing.functions import FunctionSite

LOGGER = logging.getLogger(__name__)

BREAKPOINT_DELIMITER = "\nBreakpoint "


@dataclass(frozen=True, slots=True)
class Edge:
    """A caller -> callee observation from one breakpoint hit.

    ``caller`` is ``None`` when GDB reported no frame above the callee.
    """

    caller: Optional[StackFrame]
    callee: StackFrame
    callee_source_line: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Anomaly:
    """A breakpoint hit that could not be turned into edges."""

    segment_index: int
    message: str
    segment: str = ""


@dataclass(slots=True)
class ParseResult:
    edges: List[Edge] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)

    def __iter__(self):
        return iter(self.edges)

    def __len__(self) -> int:
        return len(self.edges)


AnomalySink = Callable[[Anomaly], None]


class _SegmentAnomaly(Exception):
    """Internal signal that the current hit segment must be skipped."""


def _source_line_matches(source_line: str, frame: StackFrame) -> bool:
    """Whether ``source_line`` (e.g. ``"25\\t  baz(n);"``) belongs to ``frame``."""

    if frame.source_line is None:
        return False
    digits = ""
    for char in source_line:
        if not char.isdigit():
            break
        digits += char
    return digits == str(frame.source_line)


def _segment_frames(lines: Sequence[str]) -> List[StackFrame]:
    frames = []
    for line in lines:
        if not line.startswith("#"):
            continue
        try:
            frames.append(parse_stack_frame(line))
        except ParseError as exc:
            raise _SegmentAnomaly(str(exc)) from exc
    return frames


def _pair_frames(frames: Sequence[StackFrame]) -> List[Edge]:
    """Pair up the frames of a segment in which several hits were merged."""

    edges: List[Edge] = []
    idx = 0
    while idx < len(frames):
        callee = frames[idx]
        if callee.frame_number != 0:
            raise _SegmentAnomaly(f"invalid stack frame number; expected #0, got #{callee.frame_number}")
        caller = None
        if idx + 1 < len(frames) and frames[idx + 1].frame_number != 0:
            caller = frames[idx + 1]
            idx += 1
        else:
            LOGGER.debug("no caller reported for %s in merged breakpoint hit", callee.function_name)
        edges.append(Edge(caller=caller, callee=callee))
        idx += 1
    return edges


def _segment_edges(lines: Sequence[str]) -> List[Edge]:
    frames = _segment_frames(lines[1:])
    if not frames:
        raise _SegmentAnomaly("unable to determine caller/callee of breakpoint hit")

    if len(frames) <= 2:
        callee = frames[0]
        if callee.frame_number != 0:
            raise _SegmentAnomaly(f"invalid stack frame number; expected #0, got #{callee.frame_number}")
        caller = frames[1] if len(frames) == 2 else None
        if caller is not None and caller.frame_number == 0:
            raise _SegmentAnomaly("unexpected #0 stack frame in caller position")
        edges = [Edge(caller=caller, callee=callee)]
    else:
        edges = _pair_frames(frames)

    # The line after the hit header is the source of the line about to run.
    if len(lines) > 1 and _source_line_matches(lines[1], edges[0].callee):
        first = edges[0]
        edges[0] = Edge(caller=first.caller, callee=first.callee, callee_source_line=lines[1])
    return edges


def parse_edges(
    transcript: str,
    functions: Sequence[FunctionSite] | None = None,
    *,
    on_anomaly: AnomalySink | None = None,
) -> ParseResult:
    """
    Parse call graph edges out of a GDB transcript.

    Example transcript::

        Breakpoint 2, foo (n=23) at test.c:19
        19      bar(n);
        #0  foo (n=23) at test.c:19
        #1  0x0000555555555152 in main (argc=1, argv=0x7fffffffe6a8) at test.c:11

    Each breakpoint hit yields one edge, or several when GDB merged multiple
    hits into one report. Hits that cannot be interpreted are recorded as
    :class:`Anomaly` entries (and logged) instead of failing the whole parse.
    ``functions`` is accepted for context only.
    """

    result = ParseResult()
    segments = transcript.replace("\r\n", "\n").split(BREAKPOINT_DELIMITER)[1:]
    for index, segment in enumerate(segments):
        try:
            edges = _segment_edges(segment.split("\n"))
        except _SegmentAnomaly as exc:
            anomaly = Anomaly(segment_index=index, message=str(exc), segment=segment)
            LOGGER.warning("Skipping breakpoint hit %d: %s", index + 1, anomaly.message)
            result.anomalies.append(anomaly)
            if on_anomaly is not None:
                on_anomaly(anomaly)
            continue
        for edge in edges:
            LOGGER.debug("edge: %s", edge)
        result.edges.extend(edges)

    if functions is not None:
        LOGGER.debug("Parsed %d edges from %d breakpoints", len(result.edges), len(functions))
    return result


__all__ = ["Anomaly", "BREAKPOINT_DELIMITER", "Edge", "ParseResult", "parse_edges"]
