"""
errors.py – Exception hierarchy for tududi-import.

Every fatal condition of an import run is an ImporterError; main() is the
only place that catches them and turns them into a non-zero exit status.
"""

from __future__ import annotations


class ImporterError(RuntimeError):
    """Base class for all fatal import errors."""


class ConfigurationError(ImporterError):
    """Raised when CLI flags or environment settings are missing or invalid."""


class ConnectivityError(ImporterError):
    """Raised when the database cannot be opened, pinged or lacks a table."""


class DiscoveryError(ImporterError):
    """Raised when walking the root directory or reading a note fails."""


class ImportFailure(ImporterError):
    """Raised when a row cannot be written during the import transaction."""


class DatabaseError(ImportFailure):
    """An insert or lookup against the Tududi database failed."""


class TagError(ImportFailure, ValueError):
    """A tag name is unusable (empty after trimming)."""
