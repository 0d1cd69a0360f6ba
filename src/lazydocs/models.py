"""Core lazydocs data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

SLUG_SEPARATOR = "~"

STATUS_DOWNLOADING = "Downloading"
STATUS_PROCESSING = "Processing"
STATUS_INDEXING = "Indexing"
STATUS_DONE = "Done"


def parse_slug(slug: str) -> Tuple[str, str]:
    """Split a slug like ``rails~7.1`` into ``("rails", "7.1")``.

    The split happens at the last separator, so ``name`` keeps everything
    before it. Slugs without a separator have an empty version.
    """
    name, sep, version = slug.rpartition(SLUG_SEPARATOR)
    if not sep:
        return slug, ""
    return name, version


def format_slug(name: str, version: str = "") -> str:
    """Inverse of :func:`parse_slug`."""
    if version:
        return f"{name}{SLUG_SEPARATOR}{version}"
    return name


def strip_fragment(path: str) -> str:
    """Drop a ``#fragment`` suffix from a content path."""
    return path.split("#", 1)[0]


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    """A docset offered by the remote catalog."""

    name: str
    slug: str
    type: str = ""
    version: str = ""
    release: str = ""
    mtime: int = 0
    db_size: int = 0


Manifest = Tuple[ManifestEntry, ...]


@dataclass(frozen=True, slots=True)
class CachedManifest:
    """Disk envelope around the last successfully fetched manifest."""

    manifest: Manifest
    fetched_at: datetime


@dataclass(slots=True)
class Docset:
    """An installed, locally indexed documentation set."""

    slug: str
    name: str
    version: str
    display_name: str
    entry_count: int
    mtime: int
    id: Optional[int] = None
    installed_at: Optional[datetime] = None

    def full_slug(self) -> str:
        return format_slug(self.name, self.version)


@dataclass(slots=True)
class Entry:
    """One documentation page, converted to plain text."""

    docset: str
    version: str
    symbol: str
    title: str
    content: str
    path: str


@dataclass(slots=True)
class SearchResult:
    """An entry matched by a full-text query.

    ``rank`` follows bm25 conventions: lower is a better match.
    """

    docset: str
    version: str
    symbol: str
    title: str
    content: str
    path: str
    rank: float
    snippet: str

    @property
    def entry(self) -> Entry:
        return Entry(
            docset=self.docset,
            version=self.version,
            symbol=self.symbol,
            title=self.title,
            content=self.content,
            path=self.path,
        )


@dataclass(slots=True)
class IndexEntry:
    """Structural index record mapping a symbol name to a content path."""

    name: str
    path: str
    type: str = ""


@dataclass(slots=True)
class StructuralIndex:
    entries: List[IndexEntry] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Progress of an install. The final ``Done`` event carries the docset."""

    downloaded: int
    total: int
    status: str
    docset: Optional[Docset] = None
