"""
importer.py – Writes discovered notes to the Tududi DB in one transaction.

Per note, in discovery order:
    insert note row
      └─ dedup tags
          └─ get-or-create each tag
              └─ link note → tag (ignored if already linked)

Any failure rolls the whole transaction back and propagates. When every
note went through, a dry run rolls back and a real run commits.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence

from tududi_import.config import ImportSettings
from tududi_import.errors import DatabaseError, TagError
from tududi_import.models import ImportSummary, Note
from tududi_import.services import tududi_db
from tududi_import.services.discovery import unique_tags
from tududi_import.services.ids import IdFactory, generate_uid
from tududi_import.services.tag_resolver import TagCache, TagResolver
from tududi_import.services.tududi_db import Clock, utc_now

logger = logging.getLogger(__name__)


def run_import(
    conn: sqlite3.Connection,
    notes: Sequence[Note],
    settings: ImportSettings,
    *,
    id_factory: IdFactory = generate_uid,
    clock: Clock = utc_now,
) -> ImportSummary:
    """Import `notes` and commit, or roll back when settings.dry_run is set."""
    summary = ImportSummary()
    resolver = TagResolver(
        conn,
        settings.user_id,
        cache=TagCache(),
        id_factory=id_factory,
        clock=clock,
    )

    with tududi_db.transaction(conn):
        for i, note in enumerate(notes, start=1):
            logger.info("[%d/%d] Importing %s", i, len(notes), note.path)

            try:
                note_id = tududi_db.insert_note(
                    conn,
                    note,
                    user_id=settings.user_id,
                    project_id=settings.project_id,
                    id_factory=id_factory,
                )
            except sqlite3.Error as exc:
                raise DatabaseError(f"insert note ({note.path}): {exc}") from exc
            summary.notes_imported += 1

            for tag in unique_tags(note.tags):
                try:
                    tag_id = resolver.get_or_create(tag)
                except TagError as exc:
                    raise TagError(f"get/create tag ({tag!r}) for {note.path}: {exc}") from exc
                try:
                    linked = tududi_db.link_note_tag(conn, note_id, tag_id, now=clock())
                except sqlite3.Error as exc:
                    raise DatabaseError(
                        f"link note/tag ({note_id},{tag_id}): {exc}"
                    ) from exc
                if linked:
                    summary.links_written += 1

        summary.tags_created = resolver.created
        summary.tags_reused = resolver.reused

        if settings.dry_run:
            logger.info("DRY-RUN: rolling back transaction")
            tududi_db.rollback(conn)
            return summary

        tududi_db.commit(conn)

    summary.committed = True
    logger.info("Import committed.")
    return summary
