"""Docset install pipeline: download, convert, persist and index."""

from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional

from pydantic import TypeAdapter, ValidationError

from lazydocs.errors import ConversionError, InvalidBundleError, TransactionError
from lazydocs.index.indexer import Indexer
from lazydocs.ingestion.converter import HtmlConverter
from lazydocs.ingestion.storage import BundleStorage
from lazydocs.models import (
    STATUS_DONE,
    STATUS_DOWNLOADING,
    STATUS_INDEXING,
    STATUS_PROCESSING,
    Docset,
    Entry,
    IndexEntry,
    ManifestEntry,
    ProgressEvent,
    StructuralIndex,
    parse_slug,
    strip_fragment,
)
from lazydocs.remote.client import DevDocsClient

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

_BUNDLE_ADAPTER = TypeAdapter(Dict[str, str])


def parse_bundle(data: bytes) -> Dict[str, str]:
    """Decode a raw bundle into a mapping of content path to HTML.

    The whole bundle is held in memory at once. DevDocs bundles stay in the
    tens of megabytes, which this pipeline accepts.
    """
    try:
        return _BUNDLE_ADAPTER.validate_python(json.loads(data))
    except (ValueError, ValidationError) as exc:
        raise InvalidBundleError(f"invalid docset bundle: {exc}") from exc


def index_by_page(index: StructuralIndex) -> Dict[str, IndexEntry]:
    """Map fragment-free page paths to the structural entry naming them.

    A page-level entry (no fragment) wins over entries that point into the
    page; among those, the first one listed is kept.
    """
    pages: Dict[str, IndexEntry] = {}
    exact: set = set()
    for item in index.entries:
        page = strip_fragment(item.path)
        is_exact = page == item.path
        if page not in pages or (is_exact and page not in exact):
            pages[page] = item
        if is_exact:
            exact.add(page)
    return pages


@dataclass(slots=True)
class ConversionStats:
    converted: int = 0
    failed: int = 0
    duplicates: int = 0
    failed_paths: List[str] = field(default_factory=list)


class Downloader:
    """Coordinates the install of one docset from the remote catalog.

    Installs of the same slug are serialized through :meth:`lock_for`.
    """

    def __init__(
        self,
        client: DevDocsClient,
        indexer: Indexer,
        storage: BundleStorage,
        *,
        converter: Optional[HtmlConverter] = None,
    ) -> None:
        self.client = client
        self.indexer = indexer
        self.storage = storage
        self.converter = converter or HtmlConverter()
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def lock_for(self, slug: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(slug, threading.Lock())
        with lock:
            yield

    def install(self, entry: ManifestEntry, on_progress: Optional[ProgressCallback] = None) -> Docset:
        """Install or update ``entry`` and return the indexed docset."""
        docset: Optional[Docset] = None
        for event in self.iter_install(entry):
            if on_progress is not None:
                on_progress(event.downloaded, event.total, event.status)
            if event.docset is not None:
                docset = event.docset
        if docset is None:
            raise TransactionError(f"install of {entry.slug} ended before indexing")
        return docset

    def iter_install(self, entry: ManifestEntry) -> Iterator[ProgressEvent]:
        """Run the install, yielding progress as it goes.

        Download progress is reported per chunk against the size the server
        announces (0 when unknown). Phase changes report against the
        manifest's ``db_size``. The final ``Done`` event carries the docset.
        """
        slug = entry.slug
        size = entry.db_size
        with self.lock_for(slug):
            yield ProgressEvent(0, size, STATUS_DOWNLOADING)
            chunks = []
            for chunk, downloaded, total in self.client.stream_raw_bundle(slug):
                chunks.append(chunk)
                yield ProgressEvent(downloaded, total, STATUS_DOWNLOADING)
            data = b"".join(chunks)

            yield ProgressEvent(size, size, STATUS_PROCESSING)
            self.storage.save(slug, data)
            structure = self.client.fetch_structural_index(slug)
            entries, stats = self.build_entries(slug, parse_bundle(data), structure)
            if stats.failed:
                LOGGER.warning("Skipped %d unconvertible pages in %s", stats.failed, slug)

            yield ProgressEvent(size, size, STATUS_INDEXING)
            name, version = parse_slug(slug)
            docset = Docset(
                slug=slug,
                name=name,
                version=version,
                display_name=entry.name,
                entry_count=len(entries),
                mtime=entry.mtime,
            )
            self.indexer.index_docset(docset, entries)

            yield ProgressEvent(size, size, STATUS_DONE, docset=docset)

    def build_entries(
        self, slug: str, bundle: Dict[str, str], structure: StructuralIndex
    ) -> tuple[List[Entry], ConversionStats]:
        """Convert every bundle page into an :class:`Entry`.

        Pages that fail to convert are skipped. Symbol and title come from
        the structural index when it names the page, else the path is used.
        """
        name, version = parse_slug(slug)
        pages = index_by_page(structure)
        stats = ConversionStats()
        seen: set = set()
        entries: List[Entry] = []
        for raw_path, html in bundle.items():
            path = strip_fragment(raw_path)
            if path in seen:
                LOGGER.debug("Skipping duplicate page %s in %s", raw_path, slug)
                stats.duplicates += 1
                continue
            try:
                content = self.converter.convert(html)
            except ConversionError as exc:
                LOGGER.warning("Could not convert %s in %s: %s", raw_path, slug, exc)
                stats.failed += 1
                stats.failed_paths.append(raw_path)
                continue
            seen.add(path)
            meta = pages.get(path)
            label = meta.name if meta is not None else path
            entries.append(
                Entry(
                    docset=name,
                    version=version,
                    symbol=label,
                    title=label,
                    content=content,
                    path=path,
                )
            )
            stats.converted += 1
        return entries, stats
