"""HTTP client for the DevDocs catalog and content hosts."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, List, Optional, Tuple, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from lazydocs.config import DEFAULT_DOCS_BASE_URL, DEFAULT_MANIFEST_URL
from lazydocs.errors import NetworkError
from lazydocs.models import Manifest, ManifestEntry, StructuralIndex

LOGGER = logging.getLogger(__name__)

USER_AGENT = "lazydocs/0.1.0"

T = TypeVar("T")

_MANIFEST_ADAPTER = TypeAdapter(List[ManifestEntry])
_INDEX_ADAPTER = TypeAdapter(StructuralIndex)

ByteProgress = Callable[[int, int], None]


def _content_length(response: httpx.Response) -> int:
    try:
        return max(int(response.headers.get("Content-Length", 0)), 0)
    except ValueError:
        return 0


class DevDocsClient:
    """Fetches the manifest, raw bundles and structural indexes.

    Every request shares one ``httpx.Client`` carrying the request timeout.
    A pre-built client can be injected, which is how tests swap in a
    ``MockTransport``.
    """

    def __init__(
        self,
        *,
        manifest_url: str = DEFAULT_MANIFEST_URL,
        docs_base_url: str = DEFAULT_DOCS_BASE_URL,
        timeout: float = 30.0,
        chunk_size: int = 32 * 1024,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.manifest_url = manifest_url
        self.docs_base_url = docs_base_url.rstrip("/")
        self.chunk_size = chunk_size
        self._http = http_client or httpx.Client(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "DevDocsClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def bundle_url(self, slug: str) -> str:
        return f"{self.docs_base_url}/{slug}/db.json"

    def index_url(self, slug: str) -> str:
        return f"{self.docs_base_url}/{slug}/index.json"

    def fetch_manifest(self) -> Manifest:
        """Download the catalog of available docsets."""
        payload = self._get_json(self.manifest_url, what="manifest")
        entries = self._validate(_MANIFEST_ADAPTER, payload, what="manifest")
        LOGGER.debug("Fetched manifest with %d docsets", len(entries))
        return tuple(entries)

    def fetch_structural_index(self, slug: str) -> StructuralIndex:
        """Download the symbol-name listing for a docset."""
        payload = self._get_json(self.index_url(slug), what=f"index for {slug}")
        return self._validate(_INDEX_ADAPTER, payload, what=f"index for {slug}")

    def stream_raw_bundle(self, slug: str) -> Iterator[Tuple[bytes, int, int]]:
        """Stream a docset's content bundle.

        Yields ``(chunk, downloaded, total)`` per chunk. ``total`` is 0 when
        the server does not announce a content length.
        """
        url = self.bundle_url(slug)
        LOGGER.info("Downloading %s", url)
        try:
            with self._http.stream("GET", url) as response:
                self._check_status(response, what=f"docset {slug}")
                total = _content_length(response)
                downloaded = 0
                for chunk in response.iter_bytes(chunk_size=self.chunk_size):
                    downloaded += len(chunk)
                    yield chunk, downloaded, total
        except httpx.HTTPError as exc:
            raise NetworkError(f"failed to fetch docset {slug}: {exc}") from exc
        LOGGER.info("Downloaded %d bytes for %s", downloaded, slug)

    def fetch_raw_bundle(self, slug: str, on_progress: Optional[ByteProgress] = None) -> bytes:
        """Download a docset's content bundle into memory."""
        parts = []
        for chunk, downloaded, total in self.stream_raw_bundle(slug):
            parts.append(chunk)
            if on_progress is not None:
                on_progress(downloaded, total)
        return b"".join(parts)

    def _get_json(self, url: str, *, what: str) -> Any:
        try:
            response = self._http.get(url)
        except httpx.HTTPError as exc:
            raise NetworkError(f"failed to fetch {what}: {exc}") from exc
        self._check_status(response, what=what)
        try:
            return response.json()
        except ValueError as exc:
            raise NetworkError(
                f"failed to decode {what}: {exc}", status_code=response.status_code
            ) from exc

    @staticmethod
    def _check_status(response: httpx.Response, *, what: str) -> None:
        if not response.is_success:
            raise NetworkError(
                f"{what} request failed with status {response.status_code}",
                status_code=response.status_code,
            )

    @staticmethod
    def _validate(adapter: TypeAdapter[T], payload: Any, *, what: str) -> T:
        try:
            return adapter.validate_python(payload)
        except ValidationError as exc:
            raise NetworkError(f"unexpected {what} shape: {exc}") from exc
