"""
discovery.py – Walk a directory tree and parse markdown files into notes.

Each .md file (case-insensitive) under the root becomes one Note:
  - title  : first "# " heading, else the file name without extension
  - tags   : inline #hashtags (in order of appearance), then one slug per
             folder between the root and the file (outer to inner)
  - times  : file mtime, used for both created_at and updated_at

The walk is lexical and deterministic. Any read or walk error aborts the
whole discovery.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Generator, Iterable
from datetime import UTC, datetime
from pathlib import Path

from tududi_import.errors import DiscoveryError
from tududi_import.models import Note

logger = logging.getLogger(__name__)

# Inline tags  #tag-name  (ASCII letters, digits, underscore, hyphen)
_HASHTAG_RE = re.compile(r"#([A-Za-z0-9_\-]+)")
# Everything a folder slug may not contain
_SLUG_DROP_RE = re.compile(r"[^a-z0-9-]")


def iter_markdown_files(root: Path) -> Generator[Path, None, None]:
    """Yield every .md file under `root`, entries of each directory sorted by name."""
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        raise DiscoveryError(f"walk {root}: {exc}") from exc

    for entry in entries:
        path = Path(entry.path)
        if entry.is_dir(follow_symlinks=False):
            yield from iter_markdown_files(path)
        elif entry.name.lower().endswith(".md"):
            yield path


def discover_notes(
    root: Path,
    *,
    tag_from_folders: bool = True,
    tag_from_hashtags: bool = True,
) -> list[Note]:
    """Return one Note per markdown file under `root`, in walk order."""
    if root.is_file():
        # A single file root is imported on its own, without folder tags.
        md_paths: Iterable[Path] = [root] if root.name.lower().endswith(".md") else []
    elif root.is_dir():
        md_paths = iter_markdown_files(root)
    else:
        raise DiscoveryError(f"walk {root}: no such file or directory")

    notes: list[Note] = []
    for md_path in md_paths:
        notes.append(
            parse_note(
                md_path,
                root,
                tag_from_folders=tag_from_folders,
                tag_from_hashtags=tag_from_hashtags,
            )
        )
        logger.debug("Parsed %s (%d raw tags)", md_path, len(notes[-1].tags))
    return notes


def parse_note(
    md_path: Path,
    root: Path,
    *,
    tag_from_folders: bool = True,
    tag_from_hashtags: bool = True,
) -> Note:
    """Read a single .md file and extract title, body, tags and mtime."""
    try:
        content = md_path.read_text(encoding="utf-8", errors="replace")
        mtime_ns = md_path.stat().st_mtime_ns
    except OSError as exc:
        raise DiscoveryError(f"parse {md_path}: {exc}") from exc

    tags: list[str] = []
    if tag_from_hashtags:
        tags.extend(extract_hashtags(content))
    if tag_from_folders:
        tags.extend(folder_tags(md_path, root))

    # Built from integers so sub-millisecond digits are never rounded up.
    modified = datetime.fromtimestamp(mtime_ns // 1_000_000_000, UTC).replace(
        microsecond=(mtime_ns // 1_000) % 1_000_000
    )
    return Note(
        title=extract_title(content, md_path.stem),
        body=content,
        path=md_path,
        created_at=modified,
        updated_at=modified,
        tags=tags,
    )


# ── Text helpers ─────────────────────────────────────────────────────────────

def extract_title(content: str, fallback: str) -> str:
    for line in content.split("\n"):
        line = line.strip()
        if line.startswith("# "):
            return line[2:].strip()
    return fallback


def extract_hashtags(content: str) -> list[str]:
    """All #hashtags in order of appearance, duplicates kept."""
    return _HASHTAG_RE.findall(content)


def folder_tags(md_path: Path, root: Path) -> list[str]:
    """Slugs of the folders between `root` and the file, outer to inner."""
    try:
        rel_dir = md_path.relative_to(root).parent
    except ValueError:
        return []
    return [slug for slug in (slugify(part) for part in rel_dir.parts) if slug]


def slugify(value: str) -> str:
    """Turn a folder name into a tag slug: "Server Notes" -> "server-notes"."""
    value = value.strip().lower().replace(" ", "-").replace("_", "-")
    return _SLUG_DROP_RE.sub("", value)


def unique_tags(tags: Iterable[str]) -> list[str]:
    """Trimmed, non-blank tags with exact duplicates removed, first occurrence wins."""
    seen: set[str] = set()
    ordered: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.add(tag)
            ordered.append(tag)
    return ordered
