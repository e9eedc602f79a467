"""Parsing of the ``info functions`` listing printed by GDB."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from gdb_callgraph.errors import ParseError

START_MARKER = "All defined functions:"
FILE_PREFIX = "File "


@dataclass(frozen=True, slots=True, order=True)
class FunctionSite:
    """A function with debug info, addressed by its declaration site."""

    file: str
    line: int
    signature: str = ""

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}"


def parse_functions(text: str) -> List[FunctionSite]:
    """
    Parse the output of GDB's ``info functions`` command.

    Example input::

        All defined functions:

        File test.c:
        9:      int main(int, char **);
        23:     static void bar(int);

        Non-debugging symbols:
        0x0000000000001000  _init

    Only functions listed under a ``File`` heading are returned, ordered by
    file then line so breakpoint numbering is stable across runs.
    """

    start = text.find(START_MARKER)
    if start == -1:
        raise ParseError(
            f"unable to find start of defined functions; expected {START_MARKER!r}, got {text!r}"
        )

    source_file = ""
    sites: List[FunctionSite] = []
    for raw in text[start:].split("\n"):
        line = raw.rstrip("\r")
        if line.startswith(FILE_PREFIX) and line.endswith(":"):
            source_file = line[len(FILE_PREFIX) : -1]
            continue
        if not line:
            source_file = ""
            continue
        if not source_file:
            continue

        # 9:	int main(int, char **);
        raw_number, separator, signature = line.partition(":")
        if not separator or not signature[:1].isspace():
            continue
        raw_number, signature = raw_number.strip(), signature.strip()
        try:
            number = int(raw_number)
        except ValueError as exc:
            raise ParseError(f"invalid line number {raw_number!r} in {source_file}", line=line) from exc
        sites.append(FunctionSite(file=source_file, line=number, signature=signature))

    sites.sort(key=lambda site: (site.file, site.line))
    return sites


__all__ = ["FunctionSite", "START_MARKER", "parse_functions"]
