"""Time-based disk cache around the remote manifest."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional

from pydantic import TypeAdapter, ValidationError

from lazydocs.errors import NetworkError, NotFoundError
from lazydocs.models import CachedManifest, Manifest, ManifestEntry
from lazydocs.remote.client import DevDocsClient
from lazydocs.utils.files import atomic_write_bytes

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=24)

_ENTRIES_ADAPTER = TypeAdapter(List[ManifestEntry])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def encode_cached_manifest(cached: CachedManifest) -> bytes:
    payload = {
        "manifest": [asdict(entry) for entry in cached.manifest],
        "fetched_at": cached.fetched_at.isoformat(),
    }
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def decode_cached_manifest(data: bytes) -> CachedManifest:
    """Parse the on-disk envelope, raising ``ValueError`` when it is malformed."""
    payload = json.loads(data)
    if not isinstance(payload, dict) or "fetched_at" not in payload:
        raise ValueError("manifest cache envelope is missing fetched_at")
    try:
        entries = _ENTRIES_ADAPTER.validate_python(payload.get("manifest"))
    except ValidationError as exc:
        raise ValueError(f"invalid cached manifest: {exc}") from exc
    return CachedManifest(manifest=tuple(entries), fetched_at=_parse_timestamp(payload["fetched_at"]))


def filter_manifest(manifest: Manifest, query: str) -> Manifest:
    """Entries whose slug or name contains ``query``, ignoring case."""
    needle = query.strip().lower()
    if not needle:
        return manifest
    return tuple(
        entry
        for entry in manifest
        if needle in entry.slug.lower() or needle in entry.name.lower()
    )


class ManifestCache:
    """Serves the manifest from disk while fresh, from the network otherwise.

    The cache keeps the last good :class:`CachedManifest` snapshot. When a
    refresh fails it hands that snapshot back instead of the error, so a
    network outage never hides catalog data that was already fetched. A cold
    start with no connectivity and nothing cached still raises.
    """

    def __init__(
        self,
        path: Path,
        client: DevDocsClient,
        *,
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.path = Path(path)
        self.client = client
        self.max_age = max_age
        self._clock = clock
        self._snapshot: Optional[CachedManifest] = None

    @property
    def snapshot(self) -> Optional[CachedManifest]:
        return self._snapshot

    def get(self, force_refresh: bool = False) -> Manifest:
        cached = None if force_refresh else self._load_from_disk()
        if cached is not None and self._is_fresh(cached):
            LOGGER.debug("Serving manifest from cache written at %s", cached.fetched_at)
            self._snapshot = cached
            return cached.manifest

        try:
            manifest = self.client.fetch_manifest()
        except NetworkError as exc:
            fallback = self._snapshot or cached or self._load_from_disk()
            if fallback is None:
                raise
            LOGGER.warning(
                "Manifest refresh failed (%s); using copy fetched at %s", exc, fallback.fetched_at
            )
            return fallback.manifest

        self._snapshot = CachedManifest(manifest=manifest, fetched_at=self._clock())
        self._save_to_disk(self._snapshot)
        return manifest

    def find(self, slug: str) -> ManifestEntry:
        """Look up ``slug`` in the current manifest, fetching it if needed."""
        for entry in self.get():
            if entry.slug == slug:
                return entry
        raise NotFoundError(f"docset {slug!r} not found in manifest")

    def _is_fresh(self, cached: CachedManifest) -> bool:
        return self._clock() - cached.fetched_at <= self.max_age

    def _load_from_disk(self) -> Optional[CachedManifest]:
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            LOGGER.warning("Could not read manifest cache %s: %s", self.path, exc)
            return None
        try:
            return decode_cached_manifest(data)
        except ValueError as exc:
            LOGGER.warning("Ignoring corrupt manifest cache %s: %s", self.path, exc)
            return None

    def _save_to_disk(self, cached: CachedManifest) -> None:
        try:
            atomic_write_bytes(self.path, encode_cached_manifest(cached))
        except OSError as exc:
            LOGGER.warning("Could not write manifest cache %s: %s", self.path, exc)
