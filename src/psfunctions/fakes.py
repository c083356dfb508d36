"""In-memory fakes for testing.

Dict-backed CacheStore, scripted NameSource and a recording Invoker.
No SQLAlchemy and no child processes, so unit tests run instantly.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from psfunctions.constants import ExtractionStrategy, InvocationStatus
from psfunctions.invocation.schemas import InvocationOutcome


class InMemoryCacheStore:
    """Dict-backed CacheStore for testing."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self.get_calls = 0
        self.put_calls = 0

    async def get(self, key: str) -> str | None:
        self.get_calls += 1
        return self._store.get(key)

    async def put(self, key: str, payload: str) -> None:
        self.put_calls += 1
        self._store[key] = payload

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    @property
    def keys(self) -> list[str]:
        return list(self._store.keys())


class FakeNameSource:
    """NameSource returning fixed names, or raising a fixed error."""

    def __init__(
        self,
        strategy: ExtractionStrategy,
        names: list[str] | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.strategy = strategy
        self.names = list(names or [])
        self.error = error
        self.delay = delay
        self.calls = 0

    async def extract(self, path: Path) -> list[str]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.names)


class FakeInvoker:
    """Invoker double: succeeds with ``stdout`` unless told otherwise.

    Tracks how many invocations overlap so tests can check that
    independent runs are not serialized.
    """

    def __init__(
        self,
        stdout: str = "OK",
        *,
        error: str | None = None,
        delay: float = 0.0,
    ) -> None:
        self.stdout = stdout
        self.error = error
        self.delay = delay
        self.calls: list[tuple[Path, str]] = []
        self.running = 0
        self.max_running = 0

    async def invoke(
        self, script_path: Path, function_name: str
    ) -> InvocationOutcome:
        self.calls.append((script_path, function_name))
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.running -= 1
        if self.error is not None:
            return InvocationOutcome(
                function_name=function_name,
                status=InvocationStatus.FAILED,
                error=self.error,
            )
        return InvocationOutcome(
            function_name=function_name,
            status=InvocationStatus.SUCCEEDED,
            stdout=self.stdout,
        )
