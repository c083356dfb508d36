"""Regex fallback for when the PowerShell parser is unavailable."""

from __future__ import annotations

import asyncio
import codecs
import re
from pathlib import Path

from psfunctions.constants import ExtractionStrategy
from psfunctions.errors import ExtractionError
from psfunctions.extraction.schemas import unique_in_order

# One left-to-right pass: whichever comment opens first wins, so a
# "<#" inside a line comment never starts a block. An unterminated
# block runs to the end of the file.
_COMMENT = re.compile(r"<#.*?(?:#>|\Z)|#[^\n]*", re.DOTALL)

_DEFINITION = re.compile(
    r"""
    (?<![\w-])(?:function|filter)\s+
    (?P<name>(?:[A-Za-z]+:)?\w[\w-]*)
    \s*(?:\(\s*\))?\s*          # optional empty list, may span lines
    \{
    (?!\s*(?:\[[^\]]*\]\s*)*param\s*\(\s*[^\s)])  # populated param() block
    """,
    re.IGNORECASE | re.VERBOSE,
)


def find_function_names(source: str) -> list[str]:
    """Names of zero-argument functions in ``source``, first seen wins."""
    stripped = _COMMENT.sub(" ", source)
    return unique_in_order(
        m.group("name") for m in _DEFINITION.finditer(stripped)
    )


class TextualNameSource:
    strategy = ExtractionStrategy.TEXTUAL

    async def extract(self, path: Path) -> list[str]:
        try:
            source = await asyncio.to_thread(read_script, path)
        except OSError as exc:
            raise ExtractionError(f"Could not read {path}: {exc}") from exc
        return find_function_names(source)


def read_script(path: Path) -> str:
    """Read a script, honouring the UTF-16 BOMs Windows editors write."""
    data = path.read_bytes()
    if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return data.decode("utf-16", errors="replace")
    return data.decode("utf-8-sig", errors="replace")
