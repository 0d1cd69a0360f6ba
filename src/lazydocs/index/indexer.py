"""Transactional writes into the full-text index."""

from __future__ import annotations

import logging
import sqlite3
from typing import Sequence

from lazydocs.errors import TransactionError
from lazydocs.index.storage import IndexStore
from lazydocs.models import Docset, Entry, parse_slug

LOGGER = logging.getLogger(__name__)


class Indexer:
    """Replaces and removes docsets in the index, one transaction per call."""

    def __init__(self, store: IndexStore) -> None:
        self.store = store

    def index_docset(self, docset: Docset, entries: Sequence[Entry]) -> None:
        """Atomically replace every entry of ``docset`` and upsert its metadata.

        On failure the index is left exactly as it was before the call.
        """
        try:
            with self.store.transaction() as conn:
                conn.execute(
                    "DELETE FROM docs WHERE docset = ? AND version = ?",
                    (docset.name, docset.version),
                )
                conn.executemany(
                    """
                    INSERT INTO docs (docset, version, symbol, title, content, path)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        (
                            entry.docset,
                            entry.version,
                            entry.symbol,
                            entry.title,
                            entry.content,
                            entry.path,
                        )
                        for entry in entries
                    ),
                )
                conn.execute(
                    """
                    INSERT INTO docsets (slug, name, version, display_name, entry_count, mtime)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(slug) DO UPDATE SET
                        display_name = excluded.display_name,
                        entry_count = excluded.entry_count,
                        mtime = excluded.mtime,
                        installed_at = strftime('%s', 'now')
                    """,
                    (
                        docset.slug,
                        docset.name,
                        docset.version,
                        docset.display_name,
                        len(entries),
                        docset.mtime,
                    ),
                )
        except sqlite3.Error as exc:
            raise TransactionError(f"failed to index docset {docset.slug}: {exc}") from exc
        LOGGER.info("Indexed %d entries for %s", len(entries), docset.slug)

    def remove_docset(self, slug: str) -> None:
        """Delete a docset's entries and metadata row in one transaction."""
        name, version = parse_slug(slug)
        try:
            with self.store.transaction() as conn:
                conn.execute("DELETE FROM docs WHERE docset = ? AND version = ?", (name, version))
                conn.execute("DELETE FROM docsets WHERE slug = ?", (slug,))
        except sqlite3.Error as exc:
            raise TransactionError(f"failed to remove docset {slug}: {exc}") from exc
        LOGGER.info("Removed %s from the index", slug)
