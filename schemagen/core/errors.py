"""
Error taxonomy — every failure the pipeline raises on purpose.

The CLI catches ``SchemagenError`` at a single boundary per command,
reports it and exits 1.  A drifted artifact is *not* an error: it is a
``ValidationResult`` with ``is_valid=False``.
"""

from __future__ import annotations


class SchemagenError(Exception):
    """Base class for all schemagen failures."""


class ConfigurationError(SchemagenError):
    """Raised when configuration is missing, unreadable or invalid."""


class ScanError(SchemagenError):
    """Raised when the schema directory or a module cannot be read."""


class EmissionError(SchemagenError):
    """Raised when the generated artifact cannot be produced or written."""


class DuplicateSymbolError(EmissionError):
    """Raised when two accepted declarations share a symbol name."""

    def __init__(self, duplicates: dict[str, list[str]]) -> None:
        self.duplicates = duplicates
        parts = [
            f"{name} ({', '.join(modules)})"
            for name, modules in duplicates.items()
        ]
        super().__init__(f"Duplicate table symbols: {'; '.join(parts)}")
