"""Run the PowerShell interpreter as an asyncio child process."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass

from psfunctions.constants import OUTPUT_ENCODING
from psfunctions.invocation.commands import build_argv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Decoded output of one finished interpreter process."""

    stdout: str
    stderr: str
    returncode: int | None
    duration_ms: float = 0.0

    @property
    def has_stderr(self) -> bool:
        return bool(self.stderr.strip())


async def run_interpreter(
    interpreter: str,
    command: str,
    *,
    timeout: float | None = None,
) -> ProcessResult:
    """Run ``command`` and wait for the process to exit.

    Raises :class:`OSError` (usually FileNotFoundError) when the
    interpreter cannot be spawned and :class:`TimeoutError` when
    ``timeout`` elapses; the child is killed in that case, and also
    when the awaiting task is cancelled.
    """
    argv = build_argv(interpreter, command)
    start = time.monotonic()
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(), timeout=timeout
        )
    except BaseException:
        # TimeoutError or CancelledError: don't leave the child running
        _kill(proc)
        raise
    duration_ms = (time.monotonic() - start) * 1000
    logger.debug(
        "%s exited with %s in %.0fms",
        interpreter,
        proc.returncode,
        duration_ms,
    )
    return ProcessResult(
        stdout=_decode(stdout),
        stderr=_decode(stderr),
        returncode=proc.returncode,
        duration_ms=duration_ms,
    )


def _kill(proc: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        proc.kill()


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode(OUTPUT_ENCODING, errors="replace")
