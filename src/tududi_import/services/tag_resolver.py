"""
tag_resolver.py – Select-or-insert of tag rows, memoised for one import run.

A tag is unique per (name, user_id). The resolver checks its TagCache, then
the tags table, and only inserts when both miss. There is no DB-level lock:
this assumes a single importer writes to the database at a time.
"""

from __future__ import annotations

import logging
import sqlite3

from tududi_import.errors import DatabaseError, TagError
from tududi_import.services.ids import IdFactory, generate_uid
from tududi_import.services.tududi_db import Clock, format_timestamp, utc_now

logger = logging.getLogger(__name__)


class TagCache:
    """Tag ids keyed by (name, user_id), scoped to one import run."""

    def __init__(self) -> None:
        self._ids: dict[tuple[str, int], int] = {}

    def get(self, name: str, user_id: int) -> int | None:
        return self._ids.get((name, user_id))

    def put(self, name: str, user_id: int, tag_id: int) -> None:
        self._ids[(name, user_id)] = tag_id

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, key: tuple[str, int]) -> bool:
        return key in self._ids


class TagResolver:
    """Resolve tag names to ids for one user, creating missing tags."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        *,
        cache: TagCache | None = None,
        id_factory: IdFactory = generate_uid,
        clock: Clock = utc_now,
    ) -> None:
        self._conn = conn
        self.user_id = user_id
        self.cache = cache if cache is not None else TagCache()
        self._id_factory = id_factory
        self._clock = clock
        self.created = 0
        self.reused = 0

    def get_or_create(self, name: str) -> int:
        name = name.strip()
        if not name:
            raise TagError("empty tag name")

        cached = self.cache.get(name, self.user_id)
        if cached is not None:
            self.reused += 1
            return cached

        try:
            row = self._conn.execute(
                "SELECT id FROM tags WHERE name = ? AND user_id = ? LIMIT 1",
                (name, self.user_id),
            ).fetchone()
        except sqlite3.Error as exc:
            raise DatabaseError(f"lookup tag ({name}): {exc}") from exc

        if row is not None:
            tag_id = row[0]
            self.reused += 1
            logger.debug("Reusing tag %r (id=%d)", name, tag_id)
        else:
            tag_id = self._insert(name)
            self.created += 1
            logger.debug("Created tag %r (id=%d)", name, tag_id)

        self.cache.put(name, self.user_id, tag_id)
        return tag_id

    def _insert(self, name: str) -> int:
        now = format_timestamp(self._clock())
        try:
            cur = self._conn.execute(
                "INSERT INTO tags (uid, name, user_id, created_at, updated_at) VALUES (?,?,?,?,?)",
                (self._id_factory(), name, self.user_id, now, now),
            )
        except sqlite3.Error as exc:
            raise DatabaseError(f"insert tag ({name}): {exc}") from exc
        return cur.lastrowid
