"""Progress events reported to the presentation layer."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

from psfunctions.constants import SessionEventKind


@dataclass(frozen=True)
class SessionEvent:
    """One toast-style notification: a title plus optional detail."""

    kind: SessionEventKind
    title: str
    message: str = ""
    function_name: str | None = None
    count: int | None = None

    @property
    def is_failure(self) -> bool:
        return self.kind in (
            SessionEventKind.LOAD_FAILED,
            SessionEventKind.INVOKE_FAILED,
        )


ProgressCallback: TypeAlias = Callable[[SessionEvent], None]
