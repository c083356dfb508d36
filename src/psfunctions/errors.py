"""Exception taxonomy.

Resolver and extractor errors propagate to the session, which turns
them into user-visible state. CacheError never escapes the cache layer
and InvocationError never escapes the invoker.
"""

from __future__ import annotations


class PsFunctionsError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(PsFunctionsError):
    """The script path setting is missing or empty."""


class NotFoundError(PsFunctionsError):
    """The configured script does not exist on disk."""


class ExtractionError(PsFunctionsError):
    """No name source could read the script.

    ``causes`` keeps the per-strategy messages for diagnostics.
    """

    def __init__(self, message: str, causes: list[str] | None = None) -> None:
        super().__init__(message)
        self.causes: list[str] = causes or []


class InvocationError(PsFunctionsError):
    """The child process could not run or reported an error."""


class CacheError(PsFunctionsError):
    """A cache payload could not be stored or decoded."""
