"""Tests for file utility functions."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from lazydocs.utils.files import atomic_write_bytes


class TestAtomicWriteBytes:
    """Test atomic_write_bytes function."""

    def test_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "file.json"
        atomic_write_bytes(target, b"{}")
        assert target.read_bytes() == b"{}"

    def test_overwrites(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_bytes(b"old")
        atomic_write_bytes(target, b"new")
        assert target.read_bytes() == b"new"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        atomic_write_bytes(target, b"data")
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]

    def test_failed_replace_keeps_original(self, tmp_path: Path) -> None:
        """Should leave the old file and no temp file behind on failure."""
        target = tmp_path / "file.json"
        target.write_bytes(b"old")

        with patch("lazydocs.utils.files.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write_bytes(target, b"new")

        assert target.read_bytes() == b"old"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]
