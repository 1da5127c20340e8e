"""Shared pytest fixtures."""
from __future__ import annotations

import itertools
import os
import sqlite3
from collections.abc import Callable, Generator
from contextlib import closing
from pathlib import Path

import pytest

from tududi_import.config import ImportSettings
from tududi_import.services import tududi_db

# Minimal copy of the Tududi tables the importer writes to.
TUDUDI_SCHEMA = """
CREATE TABLE notes (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    uid        TEXT NOT NULL,
    title      TEXT NOT NULL,
    content    TEXT,
    user_id    INTEGER NOT NULL,
    project_id INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE TABLE tags (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    uid        TEXT NOT NULL,
    name       TEXT NOT NULL,
    user_id    INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE TABLE notes_tags (
    note_id    INTEGER NOT NULL,
    tag_id     INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (note_id, tag_id)
);
"""

NOTE_FILES = {
    "inbox.md": "# Inbox\n\nBuy milk #todo #todo #errand\n",
    "readme.txt": "not markdown #ignored\n",
    "Cottage/plan.MD": "# Plan\n\nNothing tagged here.\n",
    "Cottage/Repairs/list.md": "Fix the roof #todo\n",
    "Server_Notes/Deep Dive.md": "# Deep Dive\n#infra notes\n",
}


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep stray TUDUDI_IMPORT_* variables and .env files out of Settings."""
    for key in list(os.environ):
        if key.upper().startswith("TUDUDI_IMPORT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "tududi.sqlite3"
    conn = sqlite3.connect(path)
    conn.executescript(TUDUDI_SCHEMA)
    conn.close()
    return path


@pytest.fixture()
def conn(db_path: Path) -> Generator[sqlite3.Connection, None, None]:
    connection = tududi_db.connect(db_path)
    yield connection
    connection.close()


@pytest.fixture()
def notes_root(tmp_path: Path) -> Path:
    root = tmp_path / "notes"
    for rel, text in NOTE_FILES.items():
        f = root / rel
        f.parent.mkdir(parents=True, exist_ok=True)
        f.write_text(text, encoding="utf-8")
    return root


@pytest.fixture()
def make_settings(db_path: Path, notes_root: Path) -> Callable[..., ImportSettings]:
    def _make(**overrides) -> ImportSettings:
        return ImportSettings(db_path=db_path, root=notes_root, **overrides)

    return _make


@pytest.fixture()
def id_factory() -> Callable[[], str]:
    """Deterministic 15-character uids: u00000000000001, u00000000000002, …"""
    counter = itertools.count(1)
    return lambda: f"u{next(counter):014d}"


@pytest.fixture()
def row_count(db_path: Path) -> Callable[[str], int]:
    """Count a table's rows through a fresh connection (sees committed data only)."""

    def _count(table: str) -> int:
        with closing(sqlite3.connect(db_path)) as c:
            return c.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    return _count
