"""Protocol for interchangeable name sources.

Implementations satisfy this structurally (no inheritance). Test
doubles can be plain classes with the same signature.
"""

from pathlib import Path
from typing import Protocol

from psfunctions.constants import ExtractionStrategy


class NameSource(Protocol):
    strategy: ExtractionStrategy

    async def extract(self, path: Path) -> list[str]: ...
