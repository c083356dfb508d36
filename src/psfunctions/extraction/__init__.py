"""Discover zero-argument function names in a PowerShell script."""

from psfunctions.extraction.extractor import NameExtractor
from psfunctions.extraction.protocols import NameSource
from psfunctions.extraction.schemas import ExtractionResult
from psfunctions.extraction.structural import StructuralNameSource
from psfunctions.extraction.textual import TextualNameSource

__all__ = [
    "ExtractionResult",
    "NameExtractor",
    "NameSource",
    "StructuralNameSource",
    "TextualNameSource",
]
