"""psfunctions: list and run zero-argument PowerShell functions."""

__version__ = "0.1.0"
