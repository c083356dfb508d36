"""Protocol for the key-value store behind FreshnessCache.

SqlCacheStore satisfies it structurally; InMemoryCacheStore is the
test double.
"""

from typing import Protocol


class CacheStore(Protocol):
    async def get(self, key: str) -> str | None: ...
    async def put(self, key: str, payload: str) -> None: ...
    async def delete(self, key: str) -> None: ...
