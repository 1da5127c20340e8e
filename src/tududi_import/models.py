"""
Data model shared by discovery and the import writer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass
class Note:
    """A parsed markdown file, ready to be written to the notes table."""

    title: str
    body: str
    path: Path
    created_at: datetime            # file mtime (UTC)
    updated_at: datetime            # same as created_at, mtime is all we know
    tags: list[str] = field(default_factory=list)   # raw, may hold duplicates


@dataclass
class ImportSummary:
    notes_imported: int = 0
    tags_created: int = 0
    tags_reused: int = 0
    links_written: int = 0
    committed: bool = False
