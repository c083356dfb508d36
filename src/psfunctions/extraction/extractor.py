"""Pick a name source and apply the structural-then-textual policy."""

from __future__ import annotations

import logging
from pathlib import Path

from psfunctions.constants import PARSE_TIMEOUT, ExtractionStrategy
from psfunctions.errors import ExtractionError
from psfunctions.extraction.protocols import NameSource
from psfunctions.extraction.schemas import ExtractionResult
from psfunctions.extraction.structural import StructuralNameSource
from psfunctions.extraction.textual import TextualNameSource

logger = logging.getLogger(__name__)


class NameExtractor:
    """Runs the structural source, falling back to the textual one.

    A structural result with zero names is a valid answer and is
    returned as-is; the fallback only runs when the structural
    source raises.
    """

    def __init__(
        self,
        structural: NameSource,
        textual: NameSource,
        default_strategy: ExtractionStrategy = ExtractionStrategy.AUTO,
    ) -> None:
        self._structural = structural
        self._textual = textual
        self._default_strategy = default_strategy

    @classmethod
    def for_interpreter(
        cls,
        interpreter: str,
        *,
        parse_timeout: float | None = PARSE_TIMEOUT,
        default_strategy: ExtractionStrategy = ExtractionStrategy.AUTO,
    ) -> NameExtractor:
        return cls(
            StructuralNameSource(interpreter, timeout=parse_timeout),
            TextualNameSource(),
            default_strategy,
        )

    async def extract(
        self,
        path: Path,
        strategy: ExtractionStrategy | None = None,
    ) -> ExtractionResult:
        strategy = strategy or self._default_strategy
        if strategy == ExtractionStrategy.STRUCTURAL:
            return await self._run(self._structural, path)
        if strategy == ExtractionStrategy.TEXTUAL:
            return await self._run(self._textual, path)
        if strategy != ExtractionStrategy.AUTO:
            raise ValueError(f"Cannot extract with strategy {strategy!r}")

        try:
            return await self._run(self._structural, path)
        except Exception as structural_exc:  # noqa: BLE001
            logger.info(
                "Structural parse of %s failed, falling back to regex: %s",
                path,
                structural_exc,
            )
            try:
                return await self._run(self._textual, path)
            except Exception as textual_exc:  # noqa: BLE001
                causes = [
                    f"structural: {structural_exc}",
                    f"textual: {textual_exc}",
                ]
                raise ExtractionError(
                    "Failed to parse PowerShell script "
                    f"({'; '.join(causes)})",
                    causes=causes,
                ) from textual_exc

    async def _run(
        self, source: NameSource, path: Path
    ) -> ExtractionResult:
        try:
            names = await source.extract(path)
        except ExtractionError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(
                f"{source.strategy} extraction failed: {exc}",
                causes=[str(exc)],
            ) from exc
        logger.debug(
            "%s extraction found %d functions in %s",
            source.strategy,
            len(names),
            path,
        )
        return ExtractionResult(names=names, strategy=source.strategy)
