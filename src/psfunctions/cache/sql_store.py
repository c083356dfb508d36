"""SQL implementation of CacheStore."""

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from psfunctions.cache.models import Base, CacheEntry


class SqlCacheStore:
    """Cache store that owns its own sessions.

    Every operation opens a short-lived session, so separate tool
    processes sharing one database file only contend for the
    duration of a single statement. ``put`` is a single
    INSERT .. ON CONFLICT DO UPDATE, so concurrent writers are
    last-writer-wins rather than racing on the primary key.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory: async_sessionmaker[AsyncSession] = (
            async_sessionmaker(engine, expire_on_commit=False)
        )

    async def init(self) -> None:
        """Create the cache table if this database has never been used."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def get(self, key: str) -> str | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CacheEntry.payload).where(CacheEntry.key == key)
            )
            return result.scalar_one_or_none()

    async def put(self, key: str, payload: str) -> None:
        stmt = sqlite_insert(CacheEntry).values(key=key, payload=payload)
        stmt = stmt.on_conflict_do_update(
            index_elements=[CacheEntry.key],
            set_={
                "payload": stmt.excluded.payload,
                "created_at": stmt.excluded.created_at,
            },
        )
        async with self._session_factory() as session, session.begin():
            await session.execute(stmt)

    async def delete(self, key: str) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(
                sa_delete(CacheEntry).where(CacheEntry.key == key)
            )

    async def count(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count()).select_from(CacheEntry)
            )
            return result.scalar_one()
