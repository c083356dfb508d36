"""Pydantic models for script location."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ScriptLocation(BaseModel):
    """A configured script path and where it resolved to.

    ``resolved_path`` is canonical (symlinks resolved) and pointed at an
    existing regular file when it was resolved.
    """

    model_config = ConfigDict(frozen=True)

    raw_value: str
    resolved_path: Path | None = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_path is not None
