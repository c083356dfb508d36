"""Session orchestration over the resolver, cache, extractor and invoker.

A FunctionSession owns the configured ScriptLocation and the current
name list. The presentation layer drives it through configure(),
load_names(), run_function(), reload() and search(), and renders
``view``. Failures become state (PATH_INVALID / LOAD_FAILED) or
FAILED outcomes; nothing here raises for an expected failure.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias

from psfunctions.cache.freshness import FreshnessCache
from psfunctions.cache.sql_store import SqlCacheStore
from psfunctions.config import Settings, create_cache_engine
from psfunctions.constants import (
    ExtractionStrategy,
    FailureKind,
    InvocationStatus,
    LoadState,
    LocationState,
    SessionEventKind,
)
from psfunctions.errors import PsFunctionsError
from psfunctions.extraction.extractor import NameExtractor
from psfunctions.extraction.schemas import ExtractionResult
from psfunctions.ingestion.resolver import resolve_script
from psfunctions.ingestion.schemas import ScriptLocation
from psfunctions.invocation.invoker import Invoker
from psfunctions.invocation.protocols import FunctionRunner
from psfunctions.invocation.schemas import InvocationOutcome
from psfunctions.resilience.single_flight import SingleFlight
from psfunctions.services.events import ProgressCallback, SessionEvent

logger = logging.getLogger(__name__)

Resolver: TypeAlias = Callable[[str], Awaitable[ScriptLocation]]


@dataclass(frozen=True)
class SessionView:
    """Everything the presentation layer needs to render one frame."""

    names: list[str]
    is_loading: bool
    error: str | None
    location_state: LocationState
    load_state: LoadState
    script_path: Path | None = None
    strategy: ExtractionStrategy | None = None

    def empty_state(self) -> tuple[str, str]:
        """Title and description to show when there is nothing to list."""
        if self.location_state == LocationState.PATH_INVALID:
            return "Invalid Path", self.error or ""
        if self.is_loading:
            return "Loading Functions...", "Reading your script..."
        if self.error:
            return "No Parameter-less Functions Found", self.error
        return (
            "No Parameter-less Functions Found",
            f'Ensure the file at "{self.script_path}" contains '
            "functions without arguments.",
        )


@dataclass(frozen=True)
class ReloadReport:
    ok: bool
    count: int = 0
    error: str | None = None


@dataclass
class _SessionState:
    location: ScriptLocation | None = None
    location_state: LocationState = LocationState.UNCONFIGURED
    load_state: LoadState = LoadState.IDLE
    result: ExtractionResult | None = None
    error: str | None = None
    # Bumped by configure(); loads started under an older value
    # finish without touching state.
    generation: int = 0
    loading: int = 0


class FunctionSession:
    """One configured script and the functions found in it."""

    def __init__(
        self,
        cache: FreshnessCache,
        extractor: NameExtractor,
        invoker: FunctionRunner,
        *,
        resolver: Resolver = resolve_script,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._cache = cache
        self._extractor = extractor
        self._invoker = invoker
        self._resolver = resolver
        self._on_progress = on_progress
        self._flight: SingleFlight[ExtractionResult] = SingleFlight()
        self._state = _SessionState()

    # ── Presentation contract ────────────────────────────

    @property
    def view(self) -> SessionView:
        st = self._state
        return SessionView(
            names=list(st.result.names) if st.result is not None else [],
            is_loading=st.loading > 0,
            error=st.error,
            location_state=st.location_state,
            load_state=st.load_state,
            script_path=st.location.resolved_path if st.location else None,
            strategy=st.result.strategy if st.result is not None else None,
        )

    @property
    def names(self) -> list[str]:
        return list(self._state.result.names) if self._state.result else []

    async def configure(self, raw_path: str) -> SessionView:
        """Resolve a (new) script path and load its functions.

        Always re-resolves, even for an unchanged value, because the
        file behind it may have appeared or moved.
        """
        st = self._state
        st.generation += 1
        st.location = ScriptLocation(raw_value=raw_path)
        st.location_state = LocationState.RESOLVING
        st.load_state = LoadState.IDLE
        st.result = None
        st.error = None

        try:
            location = await self._resolver(raw_path)
        except (PsFunctionsError, OSError) as exc:
            st.location_state = LocationState.PATH_INVALID
            st.error = str(exc)
            logger.error("Path resolution error: %s", exc)
            return self.view

        st.location = location
        st.location_state = LocationState.READY
        await self.load_names(force_fresh=False)
        return self.view

    async def load_names(self, force_fresh: bool = False) -> list[str]:
        """Populate the name list, cache-first unless ``force_fresh``.

        Concurrent loads of the same cache key share one extraction.
        On failure the list is emptied and ``view.error`` explains why.
        """
        st = self._state
        path = self._script_path()
        if path is None:
            return []

        generation = st.generation
        st.loading += 1
        st.load_state = LoadState.LOADING
        self._report(SessionEventKind.LOAD_STARTED, "Loading Functions...")
        try:
            key = await self._cache.compute_key(path)
            result = await self._flight.run(
                key, lambda: self._load(path, key, force_fresh)
            )
        except (PsFunctionsError, OSError) as exc:
            message = f"Failed to read functions: {exc}"
            logger.error("%s", message)
            if generation == st.generation:
                st.result = None
                st.error = message
                st.load_state = LoadState.LOAD_FAILED
            self._report(
                SessionEventKind.LOAD_FAILED,
                "Failed to Load Functions",
                str(exc),
            )
            return []
        except asyncio.CancelledError:
            # Last load out settles the state; the previous list stands.
            if generation == st.generation and st.loading == 1:
                st.load_state = (
                    LoadState.LOADED
                    if st.result is not None
                    else LoadState.IDLE
                )
            raise
        finally:
            st.loading -= 1

        if generation == st.generation:
            st.result = result
            st.error = None
            st.load_state = LoadState.LOADED
        self._report(
            SessionEventKind.LOAD_DONE,
            f"Found {len(result.names)} Functions",
            count=len(result.names),
        )
        return list(result.names)

    async def run_function(self, name: str) -> InvocationOutcome:
        """Invoke ``name`` from the current script. Never raises."""
        path = self._script_path()
        if path is None:
            return self._rejected(name, "No valid script is configured.")
        if name not in self.names:
            return self._rejected(
                name, f'"{name}" is not a function in {path}'
            )

        self._report(
            SessionEventKind.INVOKE_STARTED,
            f'Executing "{name}"...',
            function_name=name,
        )
        outcome = await self._invoker.invoke(path, name)
        if outcome.ok:
            self._report(
                SessionEventKind.INVOKE_SUCCEEDED,
                f'Executed "{name}" Successfully',
                f"Output: {outcome.stdout}" if outcome.stdout else "",
                function_name=name,
            )
        else:
            self._report(
                SessionEventKind.INVOKE_FAILED,
                f'Failed to Execute "{name}"',
                outcome.error or "An unknown error occurred",
                function_name=name,
            )
        return outcome

    async def reload(self) -> ReloadReport:
        """Drop the cached list and extract again.

        From PATH_INVALID this re-runs path resolution instead, so a
        script created after configure() is picked up.
        """
        st = self._state
        if st.location_state in (
            LocationState.PATH_INVALID,
            LocationState.RESOLVING,
        ) and st.location is not None:
            view = await self.configure(st.location.raw_value)
            return self._report_from(view)

        path = self._script_path()
        if path is None:
            return ReloadReport(
                ok=False, error=st.error or "No script is configured."
            )

        try:
            key = await self._cache.compute_key(path)
        except OSError as exc:
            st.error = f"Failed to read functions: {exc}"
            st.load_state = LoadState.LOAD_FAILED
            st.result = None
            return ReloadReport(ok=False, error=st.error)

        await self._cache.remove(key)
        await self.load_names(force_fresh=True)
        return self._report_from(self.view)

    def search(self, query: str) -> list[str]:
        """Case-insensitive substring filter, order preserved."""
        needle = query.strip().lower()
        if not needle:
            return self.names
        return [n for n in self.names if needle in n.lower()]

    # ── Internals ────────────────────────────────────────

    async def _load(
        self, path: Path, key: str, force_fresh: bool
    ) -> ExtractionResult:
        if not force_fresh:
            cached = await self._cache.get(key, path)
            if cached is not None:
                logger.debug("Cache hit for %s", key)
                return ExtractionResult(
                    names=cached, strategy=ExtractionStrategy.CACHE
                )
        result = await self._extractor.extract(path)
        await self._cache.set(key, result.names, path)
        return result

    def _script_path(self) -> Path | None:
        st = self._state
        if st.location_state != LocationState.READY or st.location is None:
            return None
        return st.location.resolved_path

    def _rejected(self, name: str, reason: str) -> InvocationOutcome:
        self._report(
            SessionEventKind.INVOKE_FAILED,
            f'Failed to Execute "{name}"',
            reason,
            function_name=name,
        )
        return InvocationOutcome(
            function_name=name,
            status=InvocationStatus.FAILED,
            error=reason,
            failure_kind=FailureKind.REJECTED,
        )

    def _report_from(self, view: SessionView) -> ReloadReport:
        if view.error:
            return ReloadReport(ok=False, error=view.error)
        return ReloadReport(ok=True, count=len(view.names))

    def _report(
        self,
        kind: SessionEventKind,
        title: str,
        message: str = "",
        *,
        function_name: str | None = None,
        count: int | None = None,
    ) -> None:
        """Emit a progress event if a callback is set."""
        if self._on_progress:
            self._on_progress(
                SessionEvent(
                    kind=kind,
                    title=title,
                    message=message,
                    function_name=function_name,
                    count=count,
                )
            )


@asynccontextmanager
async def open_session(
    settings: Settings,
    *,
    on_progress: ProgressCallback | None = None,
) -> AsyncIterator[FunctionSession]:
    """Build a session backed by the persistent SQLite cache.

    The engine is disposed on exit; the database file persists.
    """
    engine = create_cache_engine(settings.cache_url)
    try:
        store = SqlCacheStore(engine)
        await store.init()
        cache = FreshnessCache(
            store,
            prefix=settings.cache_prefix,
            mode=settings.cache_key_mode,
        )
        extractor = NameExtractor.for_interpreter(
            settings.interpreter,
            parse_timeout=settings.parse_timeout_seconds,
            default_strategy=settings.extraction_strategy,
        )
        invoker = Invoker(
            settings.interpreter,
            timeout=settings.invoke_timeout_seconds,
            stderr_is_failure=settings.stderr_is_failure,
        )
        yield FunctionSession(
            cache, extractor, invoker, on_progress=on_progress
        )
    finally:
        await engine.dispose()
