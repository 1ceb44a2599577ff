"""
Unit tests for DiskStore.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from brandguide.exceptions import StorageError
from brandguide.services.thumbnail_cache import DiskStore

# CRITICAL: This line ensures async tests work with coverage
pytestmark = pytest.mark.asyncio


@pytest.fixture
def store(tmp_path: Path) -> DiskStore:
    return DiskStore(tmp_path / "cache")


class TestWrite:
    """Tests for atomic writes."""

    async def test_write_creates_parent_directories(self, store: DiskStore) -> None:
        """Test writing into a new asset directory."""
        path = store.root / "7" / "7_small_001735689600000000.jpg"

        written = await store.write(path, b"\xff\xd8data")

        assert written == path
        assert path.read_bytes() == b"\xff\xd8data"

    async def test_write_replaces_existing_file(self, store: DiskStore) -> None:
        """Test a rewrite swaps the whole payload."""
        path = store.root / "7" / "7_small_001735689600000000.jpg"
        await store.write(path, b"old")

        await store.write(path, b"new payload")

        assert path.read_bytes() == b"new payload"

    async def test_write_leaves_no_temp_files(self, store: DiskStore) -> None:
        """Test the temporary file is renamed into place."""
        path = store.root / "7" / "7_small_001735689600000000.jpg"

        await store.write(path, b"data")

        assert [p.name for p in path.parent.iterdir()] == [path.name]

    async def test_write_failure_raises_storage_error_and_cleans_up(
        self, store: DiskStore
    ) -> None:
        """Test a failed rename surfaces as StorageError without debris."""
        path = store.root / "7" / "7_small_001735689600000000.jpg"

        with patch(
            "brandguide.services.thumbnail_cache.disk_store.os.replace",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(StorageError) as exc_info:
                await store.write(path, b"data")

        assert exc_info.value.path == path
        assert isinstance(exc_info.value.original_error, OSError)
        assert list(path.parent.iterdir()) == []

    async def test_paths_outside_root_are_refused(
        self, store: DiskStore, tmp_path: Path
    ) -> None:
        """Test the store never writes outside its root."""
        with pytest.raises(StorageError, match="outside the cache root"):
            await store.write(tmp_path / "elsewhere.jpg", b"data")
        with pytest.raises(StorageError, match="outside the cache root"):
            await store.write(store.root / ".." / "escape.jpg", b"data")


class TestReadDeleteExists:
    """Tests for read, delete and exists."""

    async def test_round_trip(self, store: DiskStore) -> None:
        """Test stored bytes are read back and then deleted."""
        path = store.root / "1" / "1_medium_001735689600000000.jpg"
        await store.write(path, b"payload")

        assert await store.exists(path) is True
        assert await store.read(path) == b"payload"
        assert await store.delete(path) is True
        assert await store.exists(path) is False

    async def test_delete_missing_file_is_not_an_error(self, store: DiskStore) -> None:
        """Test deleting an absent file reports False."""
        assert await store.delete(store.root / "1" / "missing.jpg") is False

    async def test_read_missing_file_raises(self, store: DiskStore) -> None:
        """Test reading an absent file raises StorageError."""
        with pytest.raises(StorageError):
            await store.read(store.root / "1" / "missing.jpg")


class TestListingAndAggregate:
    """Tests for listing, aggregation and temp cleanup."""

    async def test_list_and_aggregate_skip_temp_files(self, store: DiskStore) -> None:
        """Test temp files are invisible to listing and totals."""
        a = store.root / "1" / "1_small_001735689600000000.jpg"
        b = store.root / "2" / "2_large_001735689600000000.jpg"
        await store.write(a, b"x" * 10)
        await store.write(b, b"y" * 30)
        (store.root / "2" / ".2_large_abc.tmp.123").write_bytes(b"z" * 99)

        assert await store.list_files() == [a, b]
        assert await store.list_files(store.root / "2") == [b]
        assert await store.aggregate() == (2, 40)

    async def test_aggregate_of_missing_root(self, store: DiskStore) -> None:
        """Test an uncreated cache root is empty."""
        assert await store.list_files() == []
        assert await store.aggregate() == (0, 0)

    async def test_cleanup_removes_only_old_temp_files(self, store: DiskStore) -> None:
        """Test young temp files of in-progress writes are kept."""
        directory = store.root / "3"
        directory.mkdir(parents=True)
        old = directory / ".3_small_a.tmp.old"
        young = directory / ".3_small_b.tmp.young"
        keep = directory / "3_small_001735689600000000.jpg"
        for path in (old, young, keep):
            path.write_bytes(b"data")
        os.utime(old, (1_600_000_000, 1_600_000_000))

        removed = await store.cleanup_temp_files(older_than=3600)

        assert removed == 1
        assert not old.exists()
        assert young.exists()
        assert keep.exists()
