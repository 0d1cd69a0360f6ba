"""On-disk copies of raw docset bundles."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from lazydocs.errors import NotFoundError, StorageError
from lazydocs.models import parse_slug
from lazydocs.utils.files import atomic_write_bytes

LOGGER = logging.getLogger(__name__)

BUNDLE_FILENAME = "db.json"


class BundleStorage:
    """Keeps the byte-identical ``db.json`` of every installed docset.

    Layout is ``<base>/<name>/<version>/db.json``, or ``<base>/<name>/db.json``
    for unversioned docsets.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def docset_dir(self, slug: str) -> Path:
        """Directory holding ``slug``'s bundle.

        Raises :class:`StorageError` for slugs whose parts are not plain
        directory names, so no slug can reach outside ``base_dir``.
        """
        name, version = parse_slug(slug)
        parts = [name, version] if version else [name]
        for part in parts:
            if part in ("", ".", "..") or "/" in part or "\\" in part:
                raise StorageError(f"invalid docset slug {slug!r}")
        directory = self.base_dir.joinpath(*parts)
        if not directory.resolve().is_relative_to(self.base_dir.resolve()):
            raise StorageError(f"invalid docset slug {slug!r}")
        return directory

    def path_for(self, slug: str) -> Path:
        return self.docset_dir(slug) / BUNDLE_FILENAME

    def save(self, slug: str, data: bytes) -> Path:
        path = self.path_for(slug)
        try:
            atomic_write_bytes(path, data)
        except OSError as exc:
            raise StorageError(f"failed to save docset {slug}: {exc}") from exc
        LOGGER.debug("Saved %d bytes to %s", len(data), path)
        return path

    def load(self, slug: str) -> bytes:
        path = self.path_for(slug)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"no local copy of docset {slug}") from exc
        except OSError as exc:
            raise StorageError(f"failed to read docset {slug}: {exc}") from exc

    def delete(self, slug: str) -> None:
        """Remove a docset's files. Missing docsets are ignored.

        An unversioned docset directory also holds the directories of its
        versioned siblings, so only its own bundle is removed there.
        """
        _, version = parse_slug(slug)
        try:
            directory = self.docset_dir(slug)
        except StorageError:
            LOGGER.warning("Ignoring removal of invalid docset slug %r", slug)
            return
        if not directory.exists():
            return
        try:
            if version:
                shutil.rmtree(directory)
            else:
                self.path_for(slug).unlink(missing_ok=True)
                if not any(directory.iterdir()):
                    directory.rmdir()
        except OSError as exc:
            raise StorageError(f"failed to delete docset {slug}: {exc}") from exc
        LOGGER.debug("Deleted docset %s from %s", slug, directory)

    def exists(self, slug: str) -> bool:
        try:
            return self.path_for(slug).is_file()
        except StorageError:
            return False
