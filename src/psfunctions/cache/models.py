"""CacheEntry ORM model: one serialized name list per cache key."""

from datetime import UTC, datetime

from sqlalchemy import String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from psfunctions.constants import CACHE_KEY_MAX_LENGTH, CACHE_TABLE


class Base(DeclarativeBase):
    pass


class CacheEntry(Base):
    __tablename__ = CACHE_TABLE

    key: Mapped[str] = mapped_column(
        String(CACHE_KEY_MAX_LENGTH), primary_key=True
    )
    payload: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )
