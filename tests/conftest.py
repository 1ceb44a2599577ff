"""
Pytest configuration and fixtures for brandguide tests.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from brandguide.config.settings import Settings
from brandguide.services.thumbnail_cache import (
    DiskStore,
    ThumbnailCacheConfig,
    ThumbnailCacheService,
)
from tests.fakes import (
    TEST_ASSET_ID,
    TEST_DRIVE_FILE_ID,
    FakeClock,
    FakeMetadataStore,
    FakeThumbnailFetcher,
)


@pytest.fixture
def mock_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary cache directory and database."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        cache_dir=tmp_path / "uploads",
        drive_access_token="test-token",
    )


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """Root directory for cached thumbnails."""
    return tmp_path / "drive-thumbnails"


@pytest.fixture
def cache_config(cache_root: Path) -> ThumbnailCacheConfig:
    """Cache configuration with the default sizes and a 7-day TTL."""
    return ThumbnailCacheConfig(
        cache_dir=cache_root,
        ttl=timedelta(days=7),
        fetch_timeout=2.0,
        max_concurrent_fetches=5,
    )


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock starting at 2025-01-20 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def metadata_store() -> FakeMetadataStore:
    """In-memory bookkeeping with the standard test asset registered."""
    store = FakeMetadataStore()
    store.add_asset(TEST_ASSET_ID, drive_file_id=TEST_DRIVE_FILE_ID)
    return store


@pytest.fixture
def fetcher() -> FakeThumbnailFetcher:
    """Scripted Drive fetcher returning a small JPEG."""
    return FakeThumbnailFetcher()


@pytest.fixture
def disk_store(cache_root: Path) -> DiskStore:
    """Disk store rooted at the temporary cache directory."""
    return DiskStore(cache_root)


@pytest.fixture
def cache_service(
    cache_config: ThumbnailCacheConfig,
    metadata_store: FakeMetadataStore,
    disk_store: DiskStore,
    clock: FakeClock,
) -> ThumbnailCacheService:
    """Cache service wired to in-memory bookkeeping and a real disk store."""
    return ThumbnailCacheService(
        config=cache_config,
        metadata_store=metadata_store,
        byte_store=disk_store,
        clock=clock,
    )
