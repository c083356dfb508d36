"""In-flight deduplication of async operations by key.

SingleFlight guarantees at most one running operation per key. If
operation A is running for key "psfn-/x.ps1-123" and caller B arrives
with the same key, B awaits A's future instead of starting another
extraction. The key is released as soon as A settles, so a later call
runs fresh. If A's task is cancelled, B is not: B starts the
operation itself.

Single-process only.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Share one in-flight result between concurrent callers.

    Usage::

        flight: SingleFlight[ExtractionResult] = SingleFlight()
        result = await flight.run(key, lambda: extractor.extract(path))
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, asyncio.Future[T]] = {}

    async def run(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        """Run ``operation`` for ``key`` or join the run already going.

        The check-and-register below has no await between lookup and
        insert, so on one event loop it cannot race.
        """
        while True:
            existing = self._in_flight.get(key)
            if existing is None:
                break
            try:
                # shield: a cancelled joiner must not cancel the owner
                return await asyncio.shield(existing)
            except asyncio.CancelledError:
                task = asyncio.current_task()
                if not existing.cancelled() or (
                    task is not None and task.cancelling()
                ):
                    raise
                # The owner was cancelled, not us: run it ourselves.

        future: asyncio.Future[T] = (
            asyncio.get_running_loop().create_future()
        )
        self._in_flight[key] = future
        try:
            result = await operation()
        except BaseException as exc:
            if isinstance(exc, asyncio.CancelledError):
                future.cancel()
            else:
                future.set_exception(exc)
            # Joiners re-raise; mark retrieved so an unjoined failure
            # does not log "exception was never retrieved".
            if not future.cancelled():
                future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._in_flight.pop(key, None)

    def is_running(self, key: str) -> bool:
        return key in self._in_flight

    @property
    def active_keys(self) -> list[str]:
        return list(self._in_flight.keys())
