"""Pydantic models for extraction output."""

from collections.abc import Iterable

from pydantic import BaseModel, Field

from psfunctions.constants import ExtractionStrategy


class ExtractionResult(BaseModel):
    """Ordered, de-duplicated callable names plus which source found them."""

    names: list[str] = Field(default_factory=lambda: list[str]())
    strategy: ExtractionStrategy

    def __len__(self) -> int:
        return len(self.names)


def unique_in_order(names: Iterable[str]) -> list[str]:
    """Drop empties and repeats; the first occurrence wins."""
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        if not name or name in seen:
            continue
        seen.add(name)
        result.append(name)
    return result
