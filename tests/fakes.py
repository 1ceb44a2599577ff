"""
In-memory test doubles for the thumbnail cache capabilities.

The cache service only talks to its collaborators through the interfaces in
``brandguide.services.interfaces``, so these doubles let the service be
exercised without a network or a database.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

from brandguide.exceptions import ThumbnailFetchError
from brandguide.models.thumbnail import AssetRecord, ThumbnailCacheEntry
from brandguide.services.interfaces import (
    MetadataStoreInterface,
    ThumbnailFetcherInterface,
)

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 2048
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 2048

TEST_ASSET_ID = 999999
TEST_DRIVE_FILE_ID = "test-drive-file-123"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 1, 20, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FakeMetadataStore(MetadataStoreInterface):
    """Dictionary-backed bookkeeping."""

    def __init__(self) -> None:
        self.assets: dict[int, AssetRecord] = {}
        self.entries: dict[tuple[int, str], ThumbnailCacheEntry] = {}
        self.save_calls = 0
        self.fail_save: Exception | None = None

    def add_asset(self, asset_id: int, **fields: object) -> AssetRecord:
        asset = AssetRecord(id=asset_id, **fields)  # type: ignore[arg-type]
        self.assets[asset_id] = asset
        return asset

    async def get_asset(self, asset_id: int) -> Optional[AssetRecord]:
        return self.assets.get(asset_id)

    async def get_entry(
        self, asset_id: int, size: str
    ) -> Optional[ThumbnailCacheEntry]:
        return self.entries.get((asset_id, size))

    async def list_entries(self, asset_id: int) -> list[ThumbnailCacheEntry]:
        found = [e for (aid, _), e in self.entries.items() if aid == asset_id]
        return sorted(found, key=lambda e: e.cached_at, reverse=True)

    async def save_entry(self, entry: ThumbnailCacheEntry) -> None:
        self.save_calls += 1
        if self.fail_save is not None:
            raise self.fail_save
        self.entries[(entry.asset_id, entry.size)] = entry

    async def clear_entries(self, asset_id: int) -> list[ThumbnailCacheEntry]:
        cleared = [e for (aid, _), e in self.entries.items() if aid == asset_id]
        for entry in cleared:
            del self.entries[(entry.asset_id, entry.size)]
        return cleared

    async def clear_entry_if_unchanged(self, entry: ThumbnailCacheEntry) -> bool:
        current = self.entries.get((entry.asset_id, entry.size))
        if current is None or current != entry:
            return False
        del self.entries[(entry.asset_id, entry.size)]
        return True

    async def list_expired(self, cutoff: datetime) -> list[ThumbnailCacheEntry]:
        return [e for e in self.entries.values() if e.cached_at < cutoff]

    async def count_entries(self) -> int:
        return len(self.entries)

    async def cached_at_bounds(
        self,
    ) -> tuple[Optional[datetime], Optional[datetime]]:
        if not self.entries:
            return None, None
        stamps = [e.cached_at for e in self.entries.values()]
        return min(stamps), max(stamps)


class FakeThumbnailFetcher(ThumbnailFetcherInterface):
    """Scripted remote provider that records every call.

    Set ``gate`` to an unset ``asyncio.Event`` to hold downloads until the
    test releases it.
    """

    def __init__(self, payload: bytes = JPEG_BYTES) -> None:
        self.payload = payload
        self.resolve_calls: list[str] = []
        self.fetch_calls: list[str] = []
        self.fail: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.delay: float = 0.0

    async def resolve_thumbnail_link(self, remote_file_id: str) -> str:
        self.resolve_calls.append(remote_file_id)
        return f"https://lh3.googleusercontent.com/d/{remote_file_id}=s220"

    async def fetch_bytes(self, url: str) -> bytes:
        self.fetch_calls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail is not None:
            raise self.fail
        return self.payload

    def fail_with(self, message: str = "Drive returned 500") -> None:
        self.fail = ThumbnailFetchError(message)
