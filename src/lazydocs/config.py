"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

DEFAULT_MANIFEST_URL = "https://devdocs.io/docs.json"
DEFAULT_DOCS_BASE_URL = "https://documents.devdocs.io"


def _get_default_data_dir() -> Path:
    """Get the default data directory following XDG conventions."""
    override = os.environ.get("LAZYDOCS_DATA_DIR")
    if override:
        return Path(override)

    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data) / "lazydocs"

    return Path.home() / ".local" / "share" / "lazydocs"


@dataclass(slots=True)
class AppConfig:
    data_dir: Path | None = None
    manifest_url: str = DEFAULT_MANIFEST_URL
    docs_base_url: str = DEFAULT_DOCS_BASE_URL
    timeout: float = 30.0
    chunk_size: int = 32 * 1024
    manifest_max_age: timedelta = timedelta(hours=24)

    def __post_init__(self) -> None:
        if self.data_dir is None:
            self.data_dir = _get_default_data_dir()
        self.data_dir = Path(self.data_dir)

    def resolve_data_dir(self, base_dir: Path | None = None) -> Path:
        if self.data_dir is None:
            self.data_dir = _get_default_data_dir()
        if Path(self.data_dir).is_absolute() or base_dir is None:
            return Path(self.data_dir)
        return base_dir / self.data_dir

    @property
    def docs_dir(self) -> Path:
        return self.resolve_data_dir() / "docs"

    @property
    def db_path(self) -> Path:
        return self.resolve_data_dir() / "index.sqlite"

    @property
    def manifest_path(self) -> Path:
        return self.resolve_data_dir() / "manifest.json"

    def ensure_dirs(self) -> None:
        for directory in (self.resolve_data_dir(), self.docs_dir):
            directory.mkdir(parents=True, exist_ok=True)
