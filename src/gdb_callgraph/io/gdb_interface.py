"""Adapters for driving GDB as a batch subprocess."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from gdb_callgraph.config import TraceConfig
from gdb_callgraph.errors import TraceError

LOGGER = logging.getLogger(__name__)


def run_gdb(binary: Path, script: str, config: TraceConfig | None = None) -> subprocess.CompletedProcess[str]:
    """
    Run GDB on ``binary`` feeding ``script`` on standard input.

    Standard output and standard error are captured separately. A non-zero exit status is
    reported as :class:`TraceError` unless ``config.allow_nonzero_exit`` is set, in which
    case it is only logged and the caller gets the completed process back.
    """

    config = config or TraceConfig()
    cmd = config.command(binary)
    LOGGER.debug("Running %s", " ".join(cmd))

    try:
        completed = subprocess.run(
            cmd,
            input=script,
            check=False,
            text=True,
            capture_output=True,
            timeout=config.timeout,
        )
    except FileNotFoundError as exc:
        raise TraceError(f"GDB executable not found: {config.gdb_path}") from exc
    except OSError as exc:
        raise TraceError(f"failed to launch GDB ({config.gdb_path}): {exc}") from exc
    except subprocess.TimeoutExpired as exc:
        stderr = exc.stderr or ""
        if isinstance(stderr, bytes):
            stderr = stderr.decode(errors="replace")
        raise TraceError(f"GDB timed out after {config.timeout}s on {binary}", stderr=stderr) from exc

    if completed.returncode < 0:
        raise TraceError(
            f"GDB error: terminated by signal {-completed.returncode} on {binary}",
            returncode=completed.returncode,
            stderr=completed.stderr,
        )
    if completed.returncode > 0:
        message = f"GDB exited with status {completed.returncode} on {binary}"
        if not config.allow_nonzero_exit:
            raise TraceError(f"GDB error: {message}", returncode=completed.returncode, stderr=completed.stderr)
        LOGGER.warning("%s; parsing the transcript anyway", message)

    return completed


__all__ = ["run_gdb"]
