"""
Thumbnail cache bookkeeping repository.

Stores one row per cached ``(asset_id, size)`` thumbnail and keeps the
summary columns on ``assets`` in step with the most recently committed
entry. ``SQLAlchemyMetadataStore`` exposes the repository through the
``MetadataStoreInterface`` consumed by the cache service, running every
operation in its own short transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from brandguide.db.models import Asset as AssetDB
from brandguide.db.models import AssetThumbnailCache as CacheEntryDB
from brandguide.models.thumbnail import AssetRecord, ThumbnailCacheEntry
from brandguide.repositories.asset_repository import AssetRepository
from brandguide.repositories.base import BaseSQLAlchemyRepository
from brandguide.services.interfaces import MetadataStoreInterface

logger = logging.getLogger(__name__)


def _to_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    return _to_utc(value) if value is not None else None


def _to_entry(row: CacheEntryDB) -> ThumbnailCacheEntry:
    return ThumbnailCacheEntry(
        asset_id=row.asset_id,
        size=row.size,
        cached_path=Path(row.cached_path),
        cache_version=row.cache_version,
        cached_at=_to_utc(row.cached_at),
    )


class ThumbnailCacheRepository(BaseSQLAlchemyRepository[CacheEntryDB]):
    """Repository for per-size thumbnail cache bookkeeping rows."""

    def __init__(self) -> None:
        """Initialize repository with AssetThumbnailCache model."""
        super().__init__(CacheEntryDB)

    async def get_by_key(
        self, session: AsyncSession, asset_id: int, size: str
    ) -> Optional[CacheEntryDB]:
        """Get the row for one ``(asset_id, size)`` key."""
        result = await session.execute(
            select(CacheEntryDB).where(
                CacheEntryDB.asset_id == asset_id,
                CacheEntryDB.size == size,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_asset(
        self, session: AsyncSession, asset_id: int
    ) -> list[CacheEntryDB]:
        """Get all rows for an asset, newest first."""
        result = await session.execute(
            select(CacheEntryDB)
            .where(CacheEntryDB.asset_id == asset_id)
            .order_by(CacheEntryDB.cached_at.desc())
        )
        return list(result.scalars().all())

    async def upsert(
        self, session: AsyncSession, entry: ThumbnailCacheEntry
    ) -> CacheEntryDB:
        """Insert or replace the row for ``(entry.asset_id, entry.size)``."""
        row = await self.get_by_key(session, entry.asset_id, entry.size)
        if row is None:
            row = CacheEntryDB(asset_id=entry.asset_id, size=entry.size)
            session.add(row)
        row.cached_path = str(entry.cached_path)
        row.cache_version = entry.cache_version
        row.cached_at = entry.cached_at
        await session.flush()
        return row

    async def delete_by_asset(self, session: AsyncSession, asset_id: int) -> int:
        """Delete all rows for an asset and return how many were removed."""
        result = await session.execute(
            delete(CacheEntryDB).where(CacheEntryDB.asset_id == asset_id)
        )
        return result.rowcount or 0

    async def delete_if_unchanged(
        self, session: AsyncSession, entry: ThumbnailCacheEntry
    ) -> bool:
        """Delete the row only if version and ``cached_at`` still match."""
        result = await session.execute(
            delete(CacheEntryDB).where(
                CacheEntryDB.asset_id == entry.asset_id,
                CacheEntryDB.size == entry.size,
                CacheEntryDB.cache_version == entry.cache_version,
                CacheEntryDB.cached_at == entry.cached_at,
            )
        )
        return (result.rowcount or 0) > 0

    async def get_older_than(
        self, session: AsyncSession, cutoff: datetime
    ) -> list[CacheEntryDB]:
        """Get rows cached strictly before ``cutoff``."""
        result = await session.execute(
            select(CacheEntryDB)
            .where(CacheEntryDB.cached_at < cutoff)
            .order_by(CacheEntryDB.cached_at)
        )
        return list(result.scalars().all())

    async def get_cached_at_bounds(
        self, session: AsyncSession
    ) -> tuple[Optional[datetime], Optional[datetime]]:
        """Return ``(min(cached_at), max(cached_at))``."""
        result = await session.execute(
            select(func.min(CacheEntryDB.cached_at), func.max(CacheEntryDB.cached_at))
        )
        oldest, newest = result.one()
        return oldest, newest


class SQLAlchemyMetadataStore(MetadataStoreInterface):
    """Metadata store backed by the relational asset database.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Factory producing sessions bound to the application database.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        asset_repository: AssetRepository | None = None,
        cache_repository: ThumbnailCacheRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._assets = asset_repository or AssetRepository()
        self._entries = cache_repository or ThumbnailCacheRepository()

    async def get_asset(self, asset_id: int) -> Optional[AssetRecord]:
        async with self._session_factory() as session:
            asset = await self._assets.get(session, asset_id)
            if asset is None:
                return None
            return AssetRecord(
                id=asset.id,
                drive_file_id=asset.drive_file_id,
                drive_last_modified=_as_utc(asset.drive_last_modified),
                drive_thumbnail_url=asset.drive_thumbnail_url,
            )

    async def get_entry(
        self, asset_id: int, size: str
    ) -> Optional[ThumbnailCacheEntry]:
        async with self._session_factory() as session:
            row = await self._entries.get_by_key(session, asset_id, size)
            return _to_entry(row) if row is not None else None

    async def list_entries(self, asset_id: int) -> list[ThumbnailCacheEntry]:
        async with self._session_factory() as session:
            rows = await self._entries.get_by_asset(session, asset_id)
            return [_to_entry(row) for row in rows]

    async def save_entry(self, entry: ThumbnailCacheEntry) -> None:
        async with self._session_factory.begin() as session:
            await self._entries.upsert(session, entry)
            asset = await self._assets.get(session, entry.asset_id)
            if asset is not None:
                asset.cached_thumbnail_path = str(entry.cached_path)
                asset.thumbnail_cache_version = entry.cache_version
                asset.thumbnail_cached_at = entry.cached_at
        logger.debug(
            "Saved thumbnail bookkeeping for asset %s (%s, version %s)",
            entry.asset_id,
            entry.size,
            entry.cache_version,
        )

    async def clear_entries(self, asset_id: int) -> list[ThumbnailCacheEntry]:
        async with self._session_factory.begin() as session:
            rows = await self._entries.get_by_asset(session, asset_id)
            cleared = [_to_entry(row) for row in rows]
            await self._entries.delete_by_asset(session, asset_id)
            asset = await self._assets.get(session, asset_id)
            if asset is not None:
                self._clear_summary(asset)
        return cleared

    async def clear_entry_if_unchanged(self, entry: ThumbnailCacheEntry) -> bool:
        async with self._session_factory.begin() as session:
            deleted = await self._entries.delete_if_unchanged(session, entry)
            if not deleted:
                return False
            asset = await self._assets.get(session, entry.asset_id)
            if asset is not None:
                remaining = await self._entries.get_by_asset(session, entry.asset_id)
                if remaining:
                    latest = remaining[0]
                    asset.cached_thumbnail_path = latest.cached_path
                    asset.thumbnail_cache_version = latest.cache_version
                    asset.thumbnail_cached_at = latest.cached_at
                else:
                    self._clear_summary(asset)
        return True

    async def list_expired(self, cutoff: datetime) -> list[ThumbnailCacheEntry]:
        async with self._session_factory() as session:
            rows = await self._entries.get_older_than(session, cutoff)
            return [_to_entry(row) for row in rows]

    async def count_entries(self) -> int:
        async with self._session_factory() as session:
            return await self._entries.count(session)

    async def cached_at_bounds(
        self,
    ) -> tuple[Optional[datetime], Optional[datetime]]:
        async with self._session_factory() as session:
            oldest, newest = await self._entries.get_cached_at_bounds(session)
            return _as_utc(oldest), _as_utc(newest)

    @staticmethod
    def _clear_summary(asset: AssetDB) -> None:
        asset.cached_thumbnail_path = None
        asset.thumbnail_cache_version = None
        asset.thumbnail_cached_at = None
