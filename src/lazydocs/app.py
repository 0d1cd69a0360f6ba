"""Application facade exposing the public lazydocs operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import httpx

from lazydocs.config import AppConfig
from lazydocs.errors import LazydocsError
from lazydocs.index.indexer import Indexer
from lazydocs.index.search import DEFAULT_LIST_LIMIT, DEFAULT_SEARCH_LIMIT, Searcher
from lazydocs.index.storage import IndexStore
from lazydocs.ingestion.downloader import Downloader, ProgressCallback
from lazydocs.ingestion.storage import BundleStorage
from lazydocs.models import Docset, Entry, Manifest, ManifestEntry, SearchResult
from lazydocs.remote.client import DevDocsClient
from lazydocs.remote.manifest import ManifestCache

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class UpdateReport:
    updated: List[Docset] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


class DocsApp:
    """Wires the components together for the CLI and other front ends."""

    def __init__(self, config: AppConfig | None = None, *, http_client: httpx.Client | None = None) -> None:
        self.config = config or AppConfig()
        self.config.ensure_dirs()

        self.client = DevDocsClient(
            manifest_url=self.config.manifest_url,
            docs_base_url=self.config.docs_base_url,
            timeout=self.config.timeout,
            chunk_size=self.config.chunk_size,
            http_client=http_client,
        )
        self.manifest = ManifestCache(
            self.config.manifest_path, self.client, max_age=self.config.manifest_max_age
        )
        self.storage = BundleStorage(self.config.docs_dir)
        self.store = IndexStore(self.config.db_path)
        self.indexer = Indexer(self.store)
        self.searcher = Searcher(self.store)
        self.downloader = Downloader(self.client, self.indexer, self.storage)

    def close(self) -> None:
        self.client.close()
        self.store.close()

    def __enter__(self) -> "DocsApp":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def list_installed_docsets(self) -> List[Docset]:
        return self.searcher.list_docsets()

    def list_available_docsets(self, force_refresh: bool = False) -> Manifest:
        return self.manifest.get(force_refresh)

    def install_docset(self, slug: str, progress: Optional[ProgressCallback] = None) -> Docset:
        """Download and index ``slug``, replacing any earlier install."""
        entry = self.manifest.find(slug)
        return self.downloader.install(entry, progress)

    def remove_docset(self, slug: str) -> None:
        """Drop a docset from the index first, then its files on disk."""
        with self.downloader.lock_for(slug):
            self.indexer.remove_docset(slug)
            self.storage.delete(slug)

    def outdated_docsets(self) -> List[ManifestEntry]:
        """Manifest entries newer than the installed copy of the same slug."""
        installed = {docset.slug: docset for docset in self.list_installed_docsets()}
        return [
            entry
            for entry in self.list_available_docsets()
            if entry.slug in installed and entry.mtime > installed[entry.slug].mtime
        ]

    def update_docsets(
        self,
        slugs: Optional[Iterable[str]] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> UpdateReport:
        """Reinstall ``slugs`` (default: every installed docset).

        One failing docset does not stop the others; failures are reported.
        """
        if slugs is None:
            slugs = [docset.slug for docset in self.list_installed_docsets()]
        report = UpdateReport()
        for slug in slugs:
            try:
                report.updated.append(self.install_docset(slug, progress))
            except LazydocsError as exc:
                LOGGER.error("Failed to update %s: %s", slug, exc)
                report.failed[slug] = str(exc)
        return report

    def search(
        self, query: str, docset: str = "", version: str = "", limit: int = DEFAULT_SEARCH_LIMIT
    ) -> List[SearchResult]:
        return self.searcher.search(query, docset, version, limit)

    def list_entries(self, docset: str, version: str = "", limit: int = DEFAULT_LIST_LIMIT) -> List[Entry]:
        return self.searcher.list_entries(docset, version, limit)

    def get_entry(self, docset: str, version: str, path: str) -> Entry:
        return self.searcher.get_entry(docset, version, path)
