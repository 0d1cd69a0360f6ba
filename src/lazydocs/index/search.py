"""Ranked full-text queries and listings over the index."""

from __future__ import annotations

import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Sequence, Tuple

from lazydocs.errors import NotFoundError, QueryError
from lazydocs.index.storage import IndexStore
from lazydocs.models import Docset, Entry, SearchResult

DEFAULT_SEARCH_LIMIT = 50
DEFAULT_LIST_LIMIT = 100

HIGHLIGHT_START = "<mark>"
HIGHLIGHT_END = "</mark>"
SNIPPET_ELLIPSIS = "..."
SNIPPET_TOKENS = 32
CONTENT_COLUMN = 4

_SPECIAL_CHARS = re.compile(r"[\"'()*:]")
# Anything else FTS5 refuses inside a bareword becomes a term separator.
_NON_BAREWORD = re.compile(r"[^\w\s\u0080-\U0010ffff]")
_OPERATORS = {"AND", "OR", "NOT", "NEAR"}


def build_match_query(query: str) -> str:
    """Turn user input into an FTS5 MATCH expression.

    Only the last term gets a prefix wildcard, so the word being typed
    matches incrementally while earlier words must match exactly.
    """
    cleaned = _SPECIAL_CHARS.sub("", query)
    cleaned = _NON_BAREWORD.sub(" ", cleaned)
    terms = [term.lower() if term in _OPERATORS else term for term in cleaned.split()]
    if not terms:
        return ""
    terms[-1] += "*"
    return " ".join(terms)


@dataclass(frozen=True, slots=True)
class Scope:
    """Which part of the index a query covers.

    ``GLOBAL`` spans every docset, ``DOCSET`` one docset across its versions
    and ``VERSION`` a single installed version.
    """

    GLOBAL = "global"
    DOCSET = "docset"
    VERSION = "version"

    kind: str
    docset: str = ""
    version: str = ""

    @classmethod
    def of(cls, docset: str = "", version: str = "") -> "Scope":
        if not docset:
            return cls(cls.GLOBAL)
        if not version:
            return cls(cls.DOCSET, docset)
        return cls(cls.VERSION, docset, version)

    def predicate(self) -> Tuple[str, Sequence[str]]:
        """SQL condition and parameters selecting rows in this scope."""
        if self.kind == self.VERSION:
            return "docset = ? AND version = ?", (self.docset, self.version)
        if self.kind == self.DOCSET:
            return "docset = ?", (self.docset,)
        return "1", ()


def _entry_from_row(row: sqlite3.Row) -> Entry:
    return Entry(
        docset=row["docset"],
        version=row["version"],
        symbol=row["symbol"],
        title=row["title"],
        content=row["content"],
        path=row["path"],
    )


def _docset_from_row(row: sqlite3.Row) -> Docset:
    installed_at = row["installed_at"]
    return Docset(
        id=row["id"],
        slug=row["slug"],
        name=row["name"],
        version=row["version"],
        display_name=row["display_name"] or "",
        entry_count=row["entry_count"] or 0,
        mtime=row["mtime"] or 0,
        installed_at=(
            datetime.fromtimestamp(int(installed_at), tz=timezone.utc)
            if installed_at is not None
            else None
        ),
    )


class Searcher:
    """High-level API to query the full-text index."""

    def __init__(self, store: IndexStore) -> None:
        self.store = store

    def search(
        self,
        query: str,
        docset: str = "",
        version: str = "",
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[SearchResult]:
        match = build_match_query(query)
        if not match:
            return []
        if limit <= 0:
            limit = DEFAULT_SEARCH_LIMIT

        condition, params = Scope.of(docset, version).predicate()
        sql = f"""
            SELECT
                docset,
                version,
                symbol,
                title,
                content,
                path,
                bm25(docs) AS rank,
                snippet(docs, {CONTENT_COLUMN}, '{HIGHLIGHT_START}', '{HIGHLIGHT_END}', '{SNIPPET_ELLIPSIS}', {SNIPPET_TOKENS}) AS snippet
            FROM docs
            WHERE docs MATCH ? AND {condition}
            ORDER BY rank
            LIMIT ?
        """
        rows = self._fetchall(sql, (match, *params, limit), what="search")
        return [
            SearchResult(
                docset=row["docset"],
                version=row["version"],
                symbol=row["symbol"],
                title=row["title"],
                content=row["content"],
                path=row["path"],
                rank=float(row["rank"]),
                snippet=row["snippet"] or "",
            )
            for row in rows
        ]

    def list_entries(
        self, docset: str, version: str = "", limit: int = DEFAULT_LIST_LIMIT
    ) -> List[Entry]:
        """Entries of a docset ordered by symbol, for browsing without a query."""
        if limit <= 0:
            limit = DEFAULT_LIST_LIMIT
        condition, params = Scope.of(docset, version).predicate()
        rows = self._fetchall(
            f"""
            SELECT docset, version, symbol, title, content, path
            FROM docs
            WHERE {condition}
            ORDER BY symbol
            LIMIT ?
            """,
            (*params, limit),
            what="list",
        )
        return [_entry_from_row(row) for row in rows]

    def get_entry(self, docset: str, version: str, path: str) -> Entry:
        rows = self._fetchall(
            """
            SELECT docset, version, symbol, title, content, path
            FROM docs
            WHERE docset = ? AND version = ? AND path = ?
            LIMIT 1
            """,
            (docset, version, path),
            what="entry lookup",
        )
        if not rows:
            raise NotFoundError(f"no entry {path!r} in {docset} {version}".rstrip())
        return _entry_from_row(rows[0])

    def list_docsets(self) -> List[Docset]:
        """Installed docsets, newest version first within each name."""
        rows = self._fetchall(
            """
            SELECT id, slug, name, version, display_name, entry_count, mtime, installed_at
            FROM docsets
            ORDER BY name, version DESC
            """,
            (),
            what="docset listing",
        )
        return [_docset_from_row(row) for row in rows]

    def _fetchall(self, sql: str, args: Sequence[object], *, what: str) -> List[sqlite3.Row]:
        try:
            with self.store.reading() as conn:
                return conn.execute(sql, args).fetchall()
        except sqlite3.Error as exc:
            raise QueryError(f"{what} query failed: {exc}") from exc
