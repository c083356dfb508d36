"""Failure classification for invocation outcomes.

Maps the exceptions raised while running a function onto a
FailureKind, so logs and the CLI can say why something failed
without string-matching messages.
"""

from __future__ import annotations

import asyncio

from psfunctions.constants import FailureKind
from psfunctions.errors import InvocationError


def classify_failure(error: BaseException) -> FailureKind:
    """Classify an exception raised before an outcome was available."""
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return FailureKind.TIMEOUT
    if isinstance(error, InvocationError):
        return FailureKind.REJECTED
    # OSError and anything else: the interpreter never ran
    return FailureKind.SPAWN


def describe_failure(kind: FailureKind, detail: str) -> str:
    """Human-readable one-liner for a failure kind."""
    prefix = {
        FailureKind.REJECTED: "Not run",
        FailureKind.SPAWN: "Could not start PowerShell",
        FailureKind.TIMEOUT: "Timed out",
        FailureKind.STDERR: "Error output",
        FailureKind.EXIT_CODE: "Failed",
    }[kind]
    return f"{prefix}: {detail}" if detail else prefix
