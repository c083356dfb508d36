"""Run one zero-argument function from a script in a child interpreter."""

from __future__ import annotations

import logging
from pathlib import Path

from psfunctions.constants import (
    ERROR_TRUNCATION_CHARS,
    FailureKind,
    InvocationStatus,
)
from psfunctions.errors import InvocationError
from psfunctions.invocation.commands import build_invoke_command
from psfunctions.invocation.process import ProcessResult, run_interpreter
from psfunctions.invocation.schemas import InvocationOutcome
from psfunctions.resilience.errors import classify_failure, describe_failure

logger = logging.getLogger(__name__)


class Invoker:
    """Dot-sources the script and calls one function by name.

    ``invoke`` never raises for a failed run; every failure becomes a
    FAILED outcome. Task cancellation is the exception: the child is
    killed and CancelledError propagates.
    """

    def __init__(
        self,
        interpreter: str,
        *,
        timeout: float | None = None,
        stderr_is_failure: bool = True,
    ) -> None:
        self._interpreter = interpreter
        self._timeout = timeout
        self._stderr_is_failure = stderr_is_failure

    async def invoke(
        self, script_path: Path, function_name: str
    ) -> InvocationOutcome:
        try:
            command = build_invoke_command(script_path, function_name)
            logger.info("Executing %s from %s", function_name, script_path)
            result = await run_interpreter(
                self._interpreter, command, timeout=self._timeout
            )
        except (InvocationError, OSError, TimeoutError) as exc:
            kind = classify_failure(exc)
            detail = (
                f"after {self._timeout}s"
                if kind == FailureKind.TIMEOUT
                else str(exc)
            )
            logger.warning("%s failed (%s): %s", function_name, kind, exc)
            return InvocationOutcome(
                function_name=function_name,
                status=InvocationStatus.FAILED,
                error=describe_failure(kind, detail),
                failure_kind=kind,
            )
        return self.outcome_from(function_name, result)

    def outcome_from(
        self, function_name: str, result: ProcessResult
    ) -> InvocationOutcome:
        """Apply the stderr / exit code policy to a finished process."""
        stdout = result.stdout.strip()
        error: str | None = None
        kind: FailureKind | None = None

        # PowerShell writes non-terminating errors to stderr and still
        # exits 0, so stderr alone marks the run as failed.
        if result.has_stderr and self._stderr_is_failure:
            error = result.stderr.strip()
            kind = FailureKind.STDERR
        elif result.returncode not in (0, None):
            error = (
                result.stderr.strip()
                or f"{self._interpreter} exited with code {result.returncode}"
            )
            kind = FailureKind.EXIT_CODE

        if kind is None:
            if result.has_stderr:
                logger.warning(
                    "%s wrote to stderr: %s",
                    function_name,
                    result.stderr.strip()[:ERROR_TRUNCATION_CHARS],
                )
            return InvocationOutcome(
                function_name=function_name,
                status=InvocationStatus.SUCCEEDED,
                stdout=stdout,
                exit_code=result.returncode,
                duration_ms=result.duration_ms,
            )

        logger.warning(
            "%s failed (%s): %s",
            function_name,
            kind,
            (error or "")[:ERROR_TRUNCATION_CHARS],
        )
        return InvocationOutcome(
            function_name=function_name,
            status=InvocationStatus.FAILED,
            stdout=stdout,
            error=error,
            failure_kind=kind,
            exit_code=result.returncode,
            duration_ms=result.duration_ms,
        )
