"""Shared GDB output samples and a fake GDB subprocess."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import List

import pytest

FUNCTION_LISTING = """\
Reading symbols from ./test...
(gdb) (gdb) (gdb) (gdb) All defined functions:

File test.c:
9:\tint main(int, char **);
23:\tstatic void bar(int);
29:\tstatic void baz(int);
17:\tstatic void foo(int);

Non-debugging symbols:
0x0000000000001000  _init
0x0000000000001030  exit@plt
0x0000000000001040  _start
(gdb) """

TRACE_TRANSCRIPT = """\
Reading symbols from ./test...
(gdb) (gdb) (gdb) (gdb) Breakpoint 1 at 0x1149: file test.c, line 11.
(gdb) Breakpoint 2 at 0x1166: file test.c, line 25.
(gdb) Breakpoint 3 at 0x117d: file test.c, line 31.
(gdb) Breakpoint 4 at 0x1158: file test.c, line 19.
(gdb) Type commands for breakpoint(s) 1, one per line.
End with a line saying just "end".
(gdb) Starting program: /tmp/test

Breakpoint 1, main (argc=1, argv=0x7fffffffe6a8) at test.c:11
11\t  foo(23);
#0  main (argc=1, argv=0x7fffffffe6a8) at test.c:11

Breakpoint 4, foo (n=23) at test.c:19
19\t  bar(n);
#0  foo (n=23) at test.c:19
#1  0x0000555555555152 in main (argc=1, argv=0x7fffffffe6a8) at test.c:11

Breakpoint 2, bar (n=23) at test.c:25
25\t  baz(n);
#0  bar (n=23) at test.c:25
#1  0x0000555555555171 in foo (n=23) at test.c:19

Breakpoint 3, baz (n=23) at test.c:31
31\t  return;
#0  baz (n=23) at test.c:31
#1  0x0000555555555189 in bar (n=23) at test.c:25
[Inferior 1 (process 4242) exited normally]
(gdb) """


@pytest.fixture
def function_listing() -> str:
    return FUNCTION_LISTING


@pytest.fixture
def trace_transcript() -> str:
    return TRACE_TRANSCRIPT


@dataclass
class FakeGdb:
    """Stands in for ``subprocess.run`` and answers like a GDB session would."""

    listing: str = FUNCTION_LISTING
    transcript: str = TRACE_TRANSCRIPT
    returncode: int = 0
    stderr: str = ""
    calls: List[dict] = field(default_factory=list)

    def __call__(self, cmd, *, input=None, **kwargs) -> subprocess.CompletedProcess[str]:
        self.calls.append({"cmd": list(cmd), "input": input, **kwargs})
        stdout = self.listing if "info functions" in input else self.transcript
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=stdout, stderr=self.stderr)

    @property
    def scripts(self) -> list[str]:
        return [call["input"] for call in self.calls]


@pytest.fixture
def fake_gdb(monkeypatch: pytest.MonkeyPatch) -> FakeGdb:
    fake = FakeGdb()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake
