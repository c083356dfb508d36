"""Pydantic models for invocation results."""

from pydantic import BaseModel

from psfunctions.constants import FailureKind, InvocationStatus


class InvocationOutcome(BaseModel):
    """Result of running one function. Never persisted."""

    function_name: str
    status: InvocationStatus
    stdout: str = ""
    error: str | None = None
    failure_kind: FailureKind | None = None
    exit_code: int | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == InvocationStatus.SUCCEEDED
