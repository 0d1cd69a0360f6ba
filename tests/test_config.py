"""Tests for application configuration."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

from lazydocs.config import DEFAULT_DOCS_BASE_URL, DEFAULT_MANIFEST_URL, AppConfig


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self, monkeypatch, tmp_path) -> None:
        """Should create config with default values."""
        monkeypatch.delenv("LAZYDOCS_DATA_DIR", raising=False)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        config = AppConfig()

        assert config.data_dir == tmp_path / ".local" / "share" / "lazydocs"
        assert config.manifest_url == DEFAULT_MANIFEST_URL
        assert config.docs_base_url == DEFAULT_DOCS_BASE_URL
        assert config.timeout == 30.0
        assert config.chunk_size == 32 * 1024
        assert config.manifest_max_age == timedelta(hours=24)

    def test_xdg_data_home(self, monkeypatch, tmp_path) -> None:
        monkeypatch.delenv("LAZYDOCS_DATA_DIR", raising=False)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))

        assert AppConfig().data_dir == tmp_path / "xdg" / "lazydocs"

    def test_env_override(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("LAZYDOCS_DATA_DIR", str(tmp_path / "custom"))

        assert AppConfig().data_dir == tmp_path / "custom"

    def test_derived_paths(self) -> None:
        config = AppConfig(data_dir=Path("/data/lazydocs"))

        assert config.docs_dir == Path("/data/lazydocs/docs")
        assert config.db_path == Path("/data/lazydocs/index.sqlite")
        assert config.manifest_path == Path("/data/lazydocs/manifest.json")

    def test_resolve_data_dir_relative_with_base(self) -> None:
        """Should resolve relative path against base_dir."""
        config = AppConfig(data_dir=Path("relative"))

        assert config.resolve_data_dir(base_dir=Path("/base")) == Path("/base/relative")

    def test_resolve_data_dir_absolute(self) -> None:
        config = AppConfig(data_dir=Path("/absolute"))

        assert config.resolve_data_dir(base_dir=Path("/base")) == Path("/absolute")

    def test_ensure_dirs(self, tmp_path) -> None:
        config = AppConfig(data_dir=tmp_path / "data")

        config.ensure_dirs()

        assert (tmp_path / "data").is_dir()
        assert (tmp_path / "data" / "docs").is_dir()
