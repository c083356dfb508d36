"""Protocol for anything that can run a function from a script."""

from pathlib import Path
from typing import Protocol

from psfunctions.invocation.schemas import InvocationOutcome


class FunctionRunner(Protocol):
    async def invoke(
        self, script_path: Path, function_name: str
    ) -> InvocationOutcome: ...
