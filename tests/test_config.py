"""Tests for Settings validators and the cache engine factory."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError
from sqlalchemy import text

from psfunctions.config import Settings, _sqlite_file, create_cache_engine
from psfunctions.constants import (
    DEFAULT_CACHE_PREFIX,
    PARSE_TIMEOUT,
    CacheKeyMode,
    ExtractionStrategy,
)


def _settings(**kwargs: object) -> Settings:
    return Settings(_env_file=None, **kwargs)  # type: ignore[arg-type]


class TestDefaults:
    def test_defaults(self) -> None:
        s = _settings()
        assert s.script_path == ""
        assert s.stderr_is_failure is True
        assert s.parse_timeout_seconds == PARSE_TIMEOUT
        assert s.invoke_timeout_seconds is None
        assert s.extraction_strategy == ExtractionStrategy.AUTO
        assert s.cache_prefix == DEFAULT_CACHE_PREFIX
        assert s.cache_key_mode == CacheKeyMode.MTIME

    def test_windows_interpreter(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("psfunctions.config.sys.platform", "win32")
        assert _settings().interpreter == "powershell.exe"

    def test_posix_interpreter(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("psfunctions.config.sys.platform", "linux")
        assert _settings().interpreter == "pwsh"


class TestEnvironment:
    def test_reads_prefixed_vars(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PSFN_SCRIPT_PATH", "~/tools/Helpers.ps1")
        monkeypatch.setenv("PSFN_STDERR_IS_FAILURE", "false")
        monkeypatch.setenv("PSFN_INVOKE_TIMEOUT_SECONDS", "12.5")
        s = _settings()
        assert s.script_path == "~/tools/Helpers.ps1"
        assert s.stderr_is_failure is False
        assert s.invoke_timeout_seconds == 12.5

    def test_unprefixed_vars_ignored(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SCRIPT_PATH", "/elsewhere.ps1")
        assert _settings().script_path == ""

    def test_strategy_case_insensitive(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PSFN_EXTRACTION_STRATEGY", " Textual ")
        monkeypatch.setenv("PSFN_CACHE_KEY_MODE", "MANUAL")
        s = _settings()
        assert s.extraction_strategy == ExtractionStrategy.TEXTUAL
        assert s.cache_key_mode == CacheKeyMode.MANUAL


class TestValidation:
    def test_cache_strategy_rejected(self) -> None:
        with pytest.raises(ValidationError, match="auto, structural or textual"):
            _settings(extraction_strategy="cache")

    def test_unknown_strategy_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _settings(extraction_strategy="guess")

    @pytest.mark.parametrize("field", ["parse_timeout_seconds", "invoke_timeout_seconds"])
    def test_non_positive_timeout_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError, match="timeouts must be positive"):
            _settings(**{field: 0})

    def test_blank_prefix_rejected(self) -> None:
        with pytest.raises(ValidationError, match="cache_prefix"):
            _settings(cache_prefix="   ")

    def test_prefix_stripped(self) -> None:
        assert _settings(cache_prefix=" team ").cache_prefix == "team"

    def test_blank_interpreter_rejected(self) -> None:
        with pytest.raises(ValidationError, match="interpreter"):
            _settings(interpreter=" ")

    def test_unusual_interpreter_warns(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="psfunctions.config"):
            s = _settings(interpreter="/opt/shells/bash")
        assert "non-standard PowerShell interpreter" in caplog.text
        assert s.interpreter == "/opt/shells/bash"

    def test_full_interpreter_path_accepted_quietly(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="psfunctions.config"):
            _settings(interpreter="/usr/local/bin/pwsh")
            _settings(interpreter=r"C:\Windows\PowerShell.exe")
        assert "non-standard" not in caplog.text


class TestSqliteFile:
    def test_plain_sqlite_url(self) -> None:
        assert _sqlite_file("sqlite:///data/cache.db") == Path("data/cache.db")

    def test_async_sqlite_url(self) -> None:
        assert _sqlite_file("sqlite+aiosqlite:////tmp/c.db") == Path("/tmp/c.db")

    def test_memory_url(self) -> None:
        assert _sqlite_file("sqlite:///:memory:") is None

    def test_other_backend(self) -> None:
        assert _sqlite_file("postgresql://host/db") is None


class TestCreateCacheEngine:
    async def test_home_shorthand_expanded(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        engine = create_cache_engine("sqlite:///~/nested/dir/cache.db")
        try:
            assert (tmp_path / "nested" / "dir").is_dir()
            assert engine.url.drivername == "sqlite+aiosqlite"
            assert engine.url.database == str(tmp_path / "nested/dir/cache.db")
        finally:
            await engine.dispose()

    async def test_wal_and_busy_timeout(self, tmp_path: Path) -> None:
        engine = create_cache_engine(f"sqlite:///{tmp_path / 'c.db'}")
        try:
            async with engine.connect() as conn:
                mode = (await conn.execute(text("PRAGMA journal_mode"))).scalar()
                busy = (await conn.execute(text("PRAGMA busy_timeout"))).scalar()
            assert str(mode).lower() == "wal"
            assert busy == 5000
        finally:
            await engine.dispose()
