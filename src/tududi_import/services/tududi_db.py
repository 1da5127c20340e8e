"""
tududi_db.py – Connection and row writers for an existing Tududi SQLite DB.

Schema (owned by Tududi, never created here)
------
  notes      (id, uid, title, content, user_id, project_id, created_at, updated_at)
  tags       (id, uid, name, user_id, created_at, updated_at)
  notes_tags (note_id, tag_id, created_at, updated_at)

The connection is opened in manual transaction mode: callers wrap their
writes in `transaction()` and decide between `commit()` and `rollback()`.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from tududi_import.errors import ConnectivityError, DatabaseError
from tududi_import.models import Note
from tududi_import.services.ids import IdFactory, generate_uid

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("notes", "tags", "notes_tags")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


# ── Timestamp formats ────────────────────────────────────────────────────────

def format_timestamp(dt: datetime) -> str:
    """`YYYY-MM-DD HH:MM:SS.mmm +00:00` in UTC, milliseconds truncated."""
    dt = dt.astimezone(UTC)
    return f"{dt:%Y-%m-%d %H:%M:%S}.{dt.microsecond // 1000:03d} +00:00"


def format_link_timestamp(dt: datetime) -> str:
    """`YYYY-MM-DD HH:MM:SS` in UTC, used by notes_tags rows."""
    return f"{dt.astimezone(UTC):%Y-%m-%d %H:%M:%S}"


# ── Connection ───────────────────────────────────────────────────────────────

def connect(db_path: Path) -> sqlite3.Connection:
    """Open an existing Tududi DB read-write, ping it and check its tables."""
    uri = f"{db_path.resolve().as_uri()}?mode=rw"
    try:
        conn = sqlite3.connect(uri, uri=True, isolation_level=None)
    except sqlite3.Error as exc:
        raise ConnectivityError(f"open db {db_path}: {exc}") from exc

    try:
        conn.execute("SELECT 1").fetchone()
        rows = conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table'"
        ).fetchall()
    except sqlite3.Error as exc:
        conn.close()
        raise ConnectivityError(f"ping db {db_path}: {exc}") from exc

    present = {r[0] for r in rows}
    missing = [t for t in REQUIRED_TABLES if t not in present]
    if missing:
        conn.close()
        raise ConnectivityError(
            f"ping db {db_path}: missing table(s) {', '.join(missing)}"
        )
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection, None, None]:
    """BEGIN a transaction; roll it back if the block raises."""
    try:
        conn.execute("BEGIN")
    except sqlite3.Error as exc:
        raise DatabaseError(f"begin tx: {exc}") from exc
    try:
        yield conn
    except BaseException:
        if conn.in_transaction:
            logger.debug("Rolling back after error")
            conn.execute("ROLLBACK")
        raise


def commit(conn: sqlite3.Connection) -> None:
    try:
        conn.execute("COMMIT")
    except sqlite3.Error as exc:
        raise DatabaseError(f"commit tx: {exc}") from exc


def rollback(conn: sqlite3.Connection) -> None:
    try:
        conn.execute("ROLLBACK")
    except sqlite3.Error as exc:
        raise DatabaseError(f"rollback tx: {exc}") from exc


# ── Write ────────────────────────────────────────────────────────────────────

def insert_note(
    conn: sqlite3.Connection,
    note: Note,
    *,
    user_id: int,
    project_id: int = -1,
    id_factory: IdFactory = generate_uid,
) -> int:
    """Insert a notes row and return its id. project_id < 0 leaves it NULL."""
    created = format_timestamp(note.created_at)
    updated = format_timestamp(note.updated_at)
    uid = id_factory()

    if project_id >= 0:
        cur = conn.execute(
            "INSERT INTO notes (uid, title, content, user_id, project_id, created_at, updated_at) "
            "VALUES (?,?,?,?,?,?,?)",
            (uid, note.title, note.body, user_id, project_id, created, updated),
        )
    else:
        cur = conn.execute(
            "INSERT INTO notes (uid, title, content, user_id, created_at, updated_at) "
            "VALUES (?,?,?,?,?,?)",
            (uid, note.title, note.body, user_id, created, updated),
        )
    return cur.lastrowid


def link_note_tag(
    conn: sqlite3.Connection,
    note_id: int,
    tag_id: int,
    *,
    now: datetime | None = None,
) -> bool:
    """Link a note to a tag. Returns False when the link already existed."""
    stamp = format_link_timestamp(now or utc_now())
    cur = conn.execute(
        "INSERT OR IGNORE INTO notes_tags (note_id, tag_id, created_at, updated_at) "
        "VALUES (?,?,?,?)",
        (note_id, tag_id, stamp, stamp),
    )
    return cur.rowcount > 0
