"""Environment-based configuration."""

from __future__ import annotations

import logging
import sys
from pathlib import Path, PureWindowsPath
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from psfunctions.constants import (
    DEFAULT_CACHE_PREFIX,
    DEFAULT_CACHE_URL,
    HOME_SHORTHAND,
    PARSE_TIMEOUT,
    POSIX_INTERPRETER,
    WINDOWS_INTERPRETER,
    CacheKeyMode,
    ExtractionStrategy,
)

logger = logging.getLogger(__name__)


def _default_interpreter() -> str:
    if sys.platform.startswith("win"):
        return WINDOWS_INTERPRETER
    return POSIX_INTERPRETER


class Settings(BaseSettings):
    """Reads from .env file and PSFN_* environment variables."""

    # Script
    script_path: str = ""

    # Interpreter
    interpreter: str = Field(default_factory=_default_interpreter)
    stderr_is_failure: bool = True
    parse_timeout_seconds: float = PARSE_TIMEOUT
    invoke_timeout_seconds: float | None = None  # None = wait forever

    # Extraction
    extraction_strategy: ExtractionStrategy = ExtractionStrategy.AUTO

    # Cache
    cache_url: str = DEFAULT_CACHE_URL
    cache_prefix: str = DEFAULT_CACHE_PREFIX
    cache_key_mode: CacheKeyMode = CacheKeyMode.MTIME

    # Logging
    log_level: str = "WARNING"

    @field_validator("extraction_strategy", "cache_key_mode", mode="before")
    @classmethod
    def _lowercase(cls, v: Any) -> Any:
        """Accept AUTO / Auto / auto from the environment."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("extraction_strategy")
    @classmethod
    def _no_cache_strategy(
        cls, v: ExtractionStrategy
    ) -> ExtractionStrategy:
        if v == ExtractionStrategy.CACHE:
            raise ValueError(
                "extraction_strategy must be auto, structural or textual"
            )
        return v

    @field_validator("parse_timeout_seconds", "invoke_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("cache_prefix")
    @classmethod
    def _validate_prefix(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cache_prefix must not be empty")
        return v

    @field_validator("interpreter")
    @classmethod
    def _validate_interpreter(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("interpreter must not be empty")
        # PureWindowsPath splits on both / and \
        if PureWindowsPath(v).stem.lower() not in ("pwsh", "powershell"):
            logger.warning(
                "Using non-standard PowerShell interpreter: %s", v
            )
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "PSFN_",
        "extra": "ignore",
    }


def _sqlite_file(url: str) -> Path | None:
    """Return the database file behind a sqlite URL, if any."""
    for scheme in ("sqlite+aiosqlite:///", "sqlite:///"):
        if url.startswith(scheme):
            rest = url[len(scheme):]
            if not rest or rest == ":memory:":
                return None
            return Path(rest)
    return None


def create_cache_engine(
    url: str, *, echo: bool = False
) -> AsyncEngine:
    """Create the async SQLite engine backing the name cache.

    Handles URL conversion (sqlite:/// → sqlite+aiosqlite:///),
    expands a leading ``~`` in the database path, creates the parent
    directory, and sets WAL mode via a pool-connect event listener so
    concurrent tool invocations can read while one writes.
    """
    db_file = _sqlite_file(url)
    if db_file is not None:
        raw = str(db_file)
        if raw.startswith(HOME_SHORTHAND):
            db_file = Path(str(Path.home()) + raw[len(HOME_SHORTHAND):])
        db_file.parent.mkdir(parents=True, exist_ok=True)
        db_url = f"sqlite+aiosqlite:///{db_file}"
    elif url.startswith("sqlite:///"):
        db_url = "sqlite+aiosqlite:///" + url[len("sqlite:///"):]
    else:
        db_url = url
    engine = create_async_engine(db_url, echo=echo)

    @event.listens_for(engine.sync_engine, "connect")
    def _set_wal_mode(
        dbapi_conn: object,
        _connection_record: object,
    ) -> None:
        cursor = dbapi_conn.cursor()  # type: ignore[union-attr]
        cursor.execute("PRAGMA journal_mode=WAL")  # pyright: ignore[reportUnknownMemberType]
        cursor.execute("PRAGMA busy_timeout=5000")  # pyright: ignore[reportUnknownMemberType]
        cursor.close()  # pyright: ignore[reportUnknownMemberType]

    return engine
