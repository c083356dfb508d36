"""Shared constants used across modules.

StrEnum members are str-compatible, so settings, JSON payloads and CLI
output work unchanged.
"""

from __future__ import annotations

import re
from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class ExtractionStrategy(StrEnum):
    """Which name source produced (or should produce) a result."""

    AUTO = "auto"
    STRUCTURAL = "structural"
    TEXTUAL = "textual"
    CACHE = "cache"


class CacheKeyMode(StrEnum):
    """How cache keys are derived.

    MTIME keys change whenever the script is modified, so stale
    entries are never read. MANUAL uses one fixed key that only an
    explicit reload clears.
    """

    MTIME = "mtime"
    MANUAL = "manual"


class InvocationStatus(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureKind(StrEnum):
    """Why an invocation failed."""

    REJECTED = "rejected"  # never spawned: bad name or no script
    SPAWN = "spawn"  # interpreter could not be started
    TIMEOUT = "timeout"
    STDERR = "stderr"
    EXIT_CODE = "exit_code"


class LocationState(StrEnum):
    UNCONFIGURED = "unconfigured"
    RESOLVING = "resolving"
    READY = "ready"
    PATH_INVALID = "path_invalid"


class LoadState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"


class SessionEventKind(StrEnum):
    """Progress notifications emitted to the presentation layer."""

    LOAD_STARTED = "load_started"
    LOAD_DONE = "load_done"
    LOAD_FAILED = "load_failed"
    INVOKE_STARTED = "invoke_started"
    INVOKE_SUCCEEDED = "invoke_succeeded"
    INVOKE_FAILED = "invoke_failed"


# ── Interpreter ──────────────────────────────────────────

# Non-interactive, no profile, relaxed execution policy for this
# process only. The composed command follows -Command.
INTERPRETER_FLAGS: tuple[str, ...] = (
    "-NoProfile",
    "-NonInteractive",
    "-ExecutionPolicy",
    "Bypass",
    "-Command",
)

WINDOWS_INTERPRETER = "powershell.exe"
POSIX_INTERPRETER = "pwsh"

FUNCTION_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_][\w\-.:]*$")

HOME_SHORTHAND = "~"

# ── Cache ────────────────────────────────────────────────

DEFAULT_CACHE_PREFIX = "psfn"
DEFAULT_CACHE_URL = "sqlite:///~/.cache/psfunctions/cache.db"
CACHE_TABLE = "cache_entries"
CACHE_KEY_MAX_LENGTH = 1024

# ── Timeouts (seconds) ───────────────────────────────────

PARSE_TIMEOUT = 30.0

# ── Misc ─────────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 200
OUTPUT_ENCODING = "utf-8"
