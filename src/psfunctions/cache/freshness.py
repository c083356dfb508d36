"""Freshness-aware name cache over an injected CacheStore.

In MTIME mode the key embeds the script's modification time, so
editing the script makes old entries unreachable without any explicit
invalidation. In MANUAL mode one fixed key is used and only reload()
clears it. Entries never expire.

Each entry records the script it was read from, and a lookup for a
different script is a miss. This matters in MANUAL mode, where every
script shares the one key.

Cache problems are never fatal: a bad payload or a failing store is
logged and treated as a miss.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from psfunctions.cache.protocols import CacheStore
from psfunctions.constants import (
    DEFAULT_CACHE_PREFIX,
    ERROR_TRUNCATION_CHARS,
    CacheKeyMode,
)
from psfunctions.errors import CacheError

logger = logging.getLogger(__name__)


class FreshnessCache:
    def __init__(
        self,
        store: CacheStore,
        *,
        prefix: str = DEFAULT_CACHE_PREFIX,
        mode: CacheKeyMode = CacheKeyMode.MTIME,
    ) -> None:
        self._store = store
        self._prefix = prefix
        self._mode = mode

    @property
    def mode(self) -> CacheKeyMode:
        return self._mode

    async def compute_key(self, path: Path) -> str:
        """``<prefix>-<canonical path>-<mtime_ns>``, or ``<prefix>``."""
        if self._mode == CacheKeyMode.MANUAL:
            return self._prefix
        mtime_ns = await asyncio.to_thread(_mtime_ns, path)
        return f"{self._prefix}-{path}-{mtime_ns}"

    async def get(
        self, key: str, script: Path | None = None
    ) -> list[str] | None:
        """Cached names for ``key``; a miss if stored for another script."""
        try:
            payload = await self._store.get(key)
            if payload is None:
                return None
            stored_for, names = decode_entry(payload)
        except CacheError as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", key, exc)
            return None
        except Exception as exc:  # noqa: BLE001
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if script is not None and stored_for != str(script):
            logger.info(
                "Cache entry %s was read from %s, not %s",
                key,
                stored_for,
                script,
            )
            return None
        return names

    async def set(
        self, key: str, names: list[str], script: Path | None = None
    ) -> None:
        try:
            await self._store.put(key, encode_names(names, script))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Cache write failed for %s: %s", key, exc)

    async def remove(self, key: str) -> None:
        try:
            await self._store.delete(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Cache delete failed for %s: %s", key, exc)


def _mtime_ns(path: Path) -> int:
    return path.stat().st_mtime_ns


def encode_names(
    names: list[str], script: Path | str | None = None
) -> str:
    """JSON array of names, or ``{"script", "names"}`` when tagged."""
    try:
        if script is None:
            return json.dumps(list(names))
        return json.dumps({"script": str(script), "names": list(names)})
    except (TypeError, ValueError) as exc:
        raise CacheError(f"Cannot serialize names: {exc}") from exc


def decode_entry(payload: str) -> tuple[str | None, list[str]]:
    """Parse a payload into ``(script or None, names)``.

    Anything but a list of strings, or an object with a string
    ``script`` and such a list under ``names``, is a CacheError.
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise CacheError(
            f"Malformed payload: {payload[:ERROR_TRUNCATION_CHARS]}"
        ) from exc
    script: str | None = None
    if isinstance(data, dict):
        script = data.get("script")
        data = data.get("names")
        if not isinstance(script, str):
            data = None
    if not isinstance(data, list) or not all(
        isinstance(n, str) for n in data
    ):
        raise CacheError(
            f"Payload is not a list of names: {payload[:ERROR_TRUNCATION_CHARS]}"
        )
    return script, data


def decode_names(payload: str) -> list[str]:
    """Names from a payload, whichever script it was tagged with."""
    return decode_entry(payload)[1]
