"""Shared test fixtures: fixture scripts, fakes and a session factory."""

import os
import shutil
from collections.abc import Iterator
from pathlib import Path

import pytest

from psfunctions.cache.freshness import FreshnessCache
from psfunctions.constants import CacheKeyMode, ExtractionStrategy
from psfunctions.extraction.extractor import NameExtractor
from psfunctions.fakes import (
    FakeInvoker,
    FakeNameSource,
    InMemoryCacheStore,
)
from psfunctions.services.session import FunctionSession

SCRIPTS_DIR = Path(__file__).resolve().parent / "fixtures" / "scripts"

# Names the textual source should find in sample.ps1, in order.
SAMPLE_NAMES = ["Get-Status", "Invoke-Cleanup", "Get-Config", "Show_Report2"]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep the developer's PSFN_* settings out of the tests."""
    for name in list(os.environ):
        if name.startswith("PSFN_"):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def sample_script(tmp_path: Path) -> Path:
    """A private copy of sample.ps1 that tests may modify."""
    target = tmp_path / "sample.ps1"
    shutil.copy(SCRIPTS_DIR / "sample.ps1", target)
    return target.resolve()


class SessionParts:
    """A FunctionSession plus the fakes behind it."""

    def __init__(
        self,
        *,
        names: list[str] | None = None,
        structural_error: Exception | None = None,
        textual_error: Exception | None = None,
        delay: float = 0.0,
        mode: CacheKeyMode = CacheKeyMode.MTIME,
        invoker: FakeInvoker | None = None,
    ) -> None:
        self.store = InMemoryCacheStore()
        self.cache = FreshnessCache(self.store, prefix="test", mode=mode)
        self.structural = FakeNameSource(
            ExtractionStrategy.STRUCTURAL,
            names if names is not None else ["Get-Status"],
            error=structural_error,
            delay=delay,
        )
        self.textual = FakeNameSource(
            ExtractionStrategy.TEXTUAL,
            ["From-Regex"],
            error=textual_error,
        )
        self.invoker = invoker or FakeInvoker()
        self.events: list[object] = []
        self.session = FunctionSession(
            self.cache,
            NameExtractor(self.structural, self.textual),
            self.invoker,
            on_progress=self.events.append,
        )

    @property
    def extractions(self) -> int:
        return self.structural.calls + self.textual.calls


@pytest.fixture
def parts() -> SessionParts:
    return SessionParts()


@pytest.fixture
def make_parts() -> type[SessionParts]:
    """Factory for sessions with non-default fakes."""
    return SessionParts


@pytest.fixture
def sample_names() -> list[str]:
    return list(SAMPLE_NAMES)
