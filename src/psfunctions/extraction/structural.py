"""Extract names with PowerShell's own parser, out of process."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from psfunctions.constants import (
    ERROR_TRUNCATION_CHARS,
    PARSE_TIMEOUT,
    ExtractionStrategy,
)
from psfunctions.errors import ExtractionError
from psfunctions.extraction.schemas import unique_in_order
from psfunctions.invocation.commands import build_parse_command
from psfunctions.invocation.process import run_interpreter

logger = logging.getLogger(__name__)


class StructuralNameSource:
    """Walks the real syntax tree, so comments, here-strings and
    nested scopes are handled the way the interpreter sees them."""

    strategy = ExtractionStrategy.STRUCTURAL

    def __init__(
        self,
        interpreter: str,
        timeout: float | None = PARSE_TIMEOUT,
    ) -> None:
        self._interpreter = interpreter
        self._timeout = timeout

    async def extract(self, path: Path) -> list[str]:
        command = build_parse_command(path)
        try:
            result = await run_interpreter(
                self._interpreter, command, timeout=self._timeout
            )
        except TimeoutError as exc:
            raise ExtractionError(
                f"PowerShell parser timed out after {self._timeout}s"
            ) from exc
        except OSError as exc:
            raise ExtractionError(
                f"Could not start {self._interpreter}: {exc}"
            ) from exc

        if result.returncode != 0 or result.has_stderr:
            detail = result.stderr.strip() or f"exit code {result.returncode}"
            raise ExtractionError(
                f"PowerShell parser failed: {detail[:ERROR_TRUNCATION_CHARS]}"
            )
        return parse_name_json(result.stdout)


def parse_name_json(raw: str) -> list[str]:
    """Decode ConvertTo-Json output into a de-duplicated name list.

    Accepts an array, a bare string (single result) or empty output.
    """
    text = raw.strip()
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExtractionError(
            f"Unexpected parser output: {text[:ERROR_TRUNCATION_CHARS]}"
        ) from exc

    if data is None:
        return []
    if isinstance(data, str):
        data = [data]
    if not isinstance(data, list) or not all(
        isinstance(n, str) for n in data
    ):
        raise ExtractionError(
            f"Unexpected parser output: {text[:ERROR_TRUNCATION_CHARS]}"
        )
    return unique_in_order(data)
