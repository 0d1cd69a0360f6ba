"""SQLite FTS5 index store."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class IndexStore:
    """Owns the connection and schema of the persistent full-text index.

    Writers go through :meth:`transaction` and readers through :meth:`reading`.
    Both hold the same lock, so a reader in this process sees the index either
    before or after a write, never halfway through one.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(self.db_path), isolation_level=None, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield self._conn
                self._conn.execute("COMMIT")
            except BaseException:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise

    @contextmanager
    def reading(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            yield self._conn

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE VIRTUAL TABLE IF NOT EXISTS docs USING fts5(
                    docset,
                    version,
                    symbol,
                    title,
                    content,
                    path,
                    tokenize = 'porter unicode61'
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS docsets (
                    id INTEGER PRIMARY KEY,
                    slug TEXT UNIQUE NOT NULL,
                    name TEXT NOT NULL,
                    version TEXT NOT NULL DEFAULT '',
                    display_name TEXT,
                    entry_count INTEGER DEFAULT 0,
                    mtime INTEGER,
                    installed_at INTEGER DEFAULT (strftime('%s', 'now'))
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_docsets_name ON docsets(name)")
