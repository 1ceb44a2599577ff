"""
Abstract Base Class for asset thumbnail cache bookkeeping.

The relational asset store is the single source of truth for what is
cached; files on disk are derived artifacts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ...models.thumbnail import AssetRecord, ThumbnailCacheEntry


class MetadataStoreInterface(ABC):
    """
    Abstract interface for reading and updating cache bookkeeping.

    Entries are keyed by ``(asset_id, size)``; each size is independent.
    """

    @abstractmethod
    async def get_asset(self, asset_id: int) -> Optional[AssetRecord]:
        """
        Look up an asset by id.

        Returns
        -------
        Optional[AssetRecord]
            The asset, or ``None`` if it does not exist.
        """
        pass

    @abstractmethod
    async def get_entry(
        self, asset_id: int, size: str
    ) -> Optional[ThumbnailCacheEntry]:
        """Return the bookkeeping for one ``(asset_id, size)`` key."""
        pass

    @abstractmethod
    async def list_entries(self, asset_id: int) -> list[ThumbnailCacheEntry]:
        """Return every cached size for an asset."""
        pass

    @abstractmethod
    async def save_entry(self, entry: ThumbnailCacheEntry) -> None:
        """Insert or replace the bookkeeping for ``(entry.asset_id, entry.size)``."""
        pass

    @abstractmethod
    async def clear_entries(self, asset_id: int) -> list[ThumbnailCacheEntry]:
        """
        Clear all bookkeeping for an asset.

        Returns
        -------
        list[ThumbnailCacheEntry]
            The entries that were removed (empty when nothing was cached).
        """
        pass

    @abstractmethod
    async def clear_entry_if_unchanged(self, entry: ThumbnailCacheEntry) -> bool:
        """
        Clear one entry only if its version and ``cached_at`` still match.

        Returns
        -------
        bool
            ``True`` if the entry was cleared, ``False`` if it had been
            refreshed or removed concurrently.
        """
        pass

    @abstractmethod
    async def list_expired(self, cutoff: datetime) -> list[ThumbnailCacheEntry]:
        """Return entries whose ``cached_at`` is older than ``cutoff``."""
        pass

    @abstractmethod
    async def count_entries(self) -> int:
        """Count all recorded cache entries."""
        pass

    @abstractmethod
    async def cached_at_bounds(
        self,
    ) -> tuple[Optional[datetime], Optional[datetime]]:
        """Return the oldest and newest ``cached_at`` values."""
        pass
