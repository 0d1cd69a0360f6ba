"""Tests for on-disk raw bundle storage."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from lazydocs.errors import NotFoundError, StorageError
from lazydocs.ingestion.storage import BundleStorage


@pytest.fixture
def storage(tmp_path) -> BundleStorage:
    return BundleStorage(tmp_path / "docs")


class TestBundleStorage:
    """Test BundleStorage layout and lifecycle."""

    def test_layout_versioned(self, storage, tmp_path) -> None:
        assert storage.path_for("rails~7.1") == tmp_path / "docs" / "rails" / "7.1" / "db.json"

    def test_layout_unversioned(self, storage, tmp_path) -> None:
        assert storage.path_for("go") == tmp_path / "docs" / "go" / "db.json"

    def test_save_and_load(self, storage) -> None:
        path = storage.save("rails~7.1", b'{"a": "b"}')

        assert path.read_bytes() == b'{"a": "b"}'
        assert storage.load("rails~7.1") == b'{"a": "b"}'
        assert storage.exists("rails~7.1")

    def test_save_overwrites(self, storage) -> None:
        storage.save("go", b"old")
        storage.save("go", b"new")

        assert storage.load("go") == b"new"

    def test_load_missing(self, storage) -> None:
        with pytest.raises(NotFoundError):
            storage.load("go")

    def test_exists_missing(self, storage) -> None:
        assert not storage.exists("go")

    def test_delete(self, storage, tmp_path) -> None:
        storage.save("rails~7.1", b"{}")

        storage.delete("rails~7.1")

        assert not storage.exists("rails~7.1")
        assert not (tmp_path / "docs" / "rails" / "7.1").exists()

    def test_delete_missing_is_noop(self, storage) -> None:
        storage.delete("never-installed~1")

    def test_delete_unversioned_keeps_versioned_siblings(self, storage) -> None:
        storage.save("python", b"{}")
        storage.save("python~3.12", b"{}")

        storage.delete("python")

        assert not storage.exists("python")
        assert storage.exists("python~3.12")

    def test_delete_unversioned_removes_empty_dir(self, storage, tmp_path) -> None:
        storage.save("go", b"{}")

        storage.delete("go")

        assert not (tmp_path / "docs" / "go").exists()

    def test_save_failure_raises_storage_error(self, storage) -> None:
        with patch("lazydocs.ingestion.storage.atomic_write_bytes", side_effect=OSError("denied")):
            with pytest.raises(StorageError, match="denied"):
                storage.save("go", b"{}")

    def test_delete_failure_raises_storage_error(self, storage) -> None:
        storage.save("rails~7.1", b"{}")

        with patch("lazydocs.ingestion.storage.shutil.rmtree", side_effect=OSError("busy")):
            with pytest.raises(StorageError):
                storage.delete("rails~7.1")


class TestSlugConfinement:
    """Slugs must never address paths outside the storage directory."""

    BAD_SLUGS = ["..~../precious", "..", "~1", "go~..", "a/b", "go~1/2", "go~1\\2", ".~1", "."]

    @pytest.fixture
    def victim(self, tmp_path):
        victim = tmp_path / "precious"
        victim.mkdir()
        (victim / "keep.txt").write_text("keep")
        return victim

    def test_delete_outside_base_is_noop(self, storage, victim) -> None:
        storage.delete("..~../precious")

        assert (victim / "keep.txt").read_text() == "keep"

    def test_delete_parent_name_is_noop(self, storage, tmp_path, victim) -> None:
        storage.delete("..")

        assert (victim / "keep.txt").exists()
        assert tmp_path.exists()

    @pytest.mark.parametrize("slug", BAD_SLUGS)
    def test_save_rejects_bad_slug(self, storage, tmp_path, slug) -> None:
        with pytest.raises(StorageError, match="invalid docset slug"):
            storage.save(slug, b"{}")

        assert list(tmp_path.rglob("db.json")) == []

    @pytest.mark.parametrize("slug", BAD_SLUGS)
    def test_load_rejects_bad_slug(self, storage, slug) -> None:
        with pytest.raises(StorageError):
            storage.load(slug)

    @pytest.mark.parametrize("slug", BAD_SLUGS)
    def test_exists_is_false_for_bad_slug(self, storage, slug) -> None:
        assert not storage.exists(slug)

    def test_symlinked_name_cannot_escape(self, storage, tmp_path, victim) -> None:
        storage.base_dir.mkdir(parents=True)
        (storage.base_dir / "link").symlink_to(victim, target_is_directory=True)

        with pytest.raises(StorageError):
            storage.save("link~1", b"{}")

        storage.delete("link~1")
        assert (victim / "keep.txt").exists()
