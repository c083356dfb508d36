"""Resolve the configured script path to a canonical file."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from psfunctions.constants import HOME_SHORTHAND
from psfunctions.errors import ConfigurationError, NotFoundError
from psfunctions.ingestion.schemas import ScriptLocation

logger = logging.getLogger(__name__)


def expand_home(raw_path: str) -> str:
    """Replace a leading ``~`` with the user's home directory.

    Only position 0 is expanded, and only once. ``~other`` becomes
    ``<home>other``; no per-user lookup is attempted.
    """
    if raw_path.startswith(HOME_SHORTHAND):
        return str(Path.home()) + raw_path[len(HOME_SHORTHAND):]
    return raw_path


async def resolve_script(raw_path: str) -> ScriptLocation:
    """Expand, validate and canonicalize a script path.

    Raises :class:`ConfigurationError` when the setting is empty and
    :class:`NotFoundError` when nothing usable exists at the path.
    """
    if not raw_path or not raw_path.strip():
        raise ConfigurationError("PowerShell script path is not set.")

    expanded = expand_home(raw_path)
    resolved = await asyncio.to_thread(_canonicalize, expanded)
    logger.debug("Resolved script %s -> %s", raw_path, resolved)
    return ScriptLocation(raw_value=raw_path, resolved_path=resolved)


def _canonicalize(expanded: str) -> Path:
    """Blocking half of :func:`resolve_script` (runs in a thread)."""
    path = Path(expanded)
    if not path.exists():
        raise NotFoundError(f"File not found at: {expanded}")
    try:
        real = path.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        # Broken symlink chain or loop between exists() and resolve()
        raise NotFoundError(f"File not found at: {expanded}") from exc
    if not real.is_file():
        raise NotFoundError(f"Not a regular file: {real}")
    return real
