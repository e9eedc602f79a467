"""Parser for single GDB backtrace lines."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from gdb_callgraph.errors import ParseError

# "#1  0x0000555555555171 in foo (" -- everything up to the argument list.
_FRAME_HEAD = re.compile(r"#(?P<num>[0-9]+)[ \t]+(?:0x[0-9A-Fa-f]+ in )?(?P<func>[^ (]+) \(")
_LOCATION = re.compile(r" at (?P<file>[^:]+):(?P<line>[0-9]+)")
_LIBRARY = re.compile(r" from \S+")


@dataclass(frozen=True, slots=True)
class StackFrame:
    """One line of a GDB backtrace.

    Frame 0 is the function executing at the breakpoint, frame 1 its caller.
    """

    frame_number: int
    function_name: str
    arguments: str = ""
    source_file: Optional[str] = None
    source_line: Optional[int] = None

    @property
    def has_location(self) -> bool:
        return self.source_file is not None and self.source_line is not None


def _closing_paren(text: str, start: int) -> int:
    """Index of the parenthesis closing the one opened just before ``start``.

    Parentheses inside string and character literals (``msg=0x402004 "smile :)"``) are
    not counted.
    """

    depth = 1
    quote = None
    escaped = False
    for idx in range(start, len(text)):
        char = text[idx]
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return idx
    return -1


def _split_arguments(text: str, start: int) -> tuple[str, str] | None:
    """Split ``text[start:]`` into the raw argument list and the trailing suffix."""

    end = _closing_paren(text, start)
    if end != -1:
        return text[start:end], text[end + 1 :]
    # Unbalanced parentheses inside argument values; fall back to the last ")"
    # that precedes the location suffix.
    location = _LOCATION.search(text, start)
    limit = location.start() if location else len(text)
    end = text.rfind(")", start, limit)
    if end == -1:
        return None
    return text[start:end], text[end + 1 :]


def parse_stack_frame(line: str) -> StackFrame:
    """
    Parse one backtrace line into a :class:`StackFrame`.

    Recognised lines look like::

        #0  foo (n=23) at test.c:19
        #1  0x0000555555555171 in foo (n=23) at test.c:19
        #1  0x56598d16 in CCritSect::CCritSect (this=0x5686a728 <sgMemCrit>) at ./src/storm.h:2079
        #1  0x5655c988 in _GLOBAL__sub_I_mainmenu.cpp ()

    The address prefix is dropped and the arguments are kept verbatim.
    """

    text = line.strip()
    head = _FRAME_HEAD.match(text)
    if head is None:
        raise ParseError(f"unable to parse stack frame line {line!r}", line=line)

    split = _split_arguments(text, head.end())
    if split is None:
        raise ParseError(f"unterminated argument list in stack frame line {line!r}", line=line)
    arguments, suffix = split

    source_file = None
    source_line = None
    suffix = suffix.strip()
    if suffix:
        location = _LOCATION.match(" " + suffix)
        if location is not None:
            source_file = location.group("file")
            source_line = int(location.group("line"))
        elif not _LIBRARY.match(" " + suffix):
            raise ParseError(f"unexpected trailing text {suffix!r} in stack frame line {line!r}", line=line)

    return StackFrame(
        frame_number=int(head.group("num")),
        function_name=head.group("func"),
        arguments=arguments,
        source_file=source_file,
        source_line=source_line,
    )


__all__ = ["StackFrame", "parse_stack_frame"]
