"""
Thumbnail cache models.

Defines Pydantic models exchanged between the thumbnail cache service, its
metadata store and the serving boundary.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AssetRecord(BaseModel):
    """Subset of an asset row relevant to Drive thumbnail caching."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Asset primary key")
    drive_file_id: Optional[str] = Field(
        default=None, description="Google Drive file identifier"
    )
    drive_last_modified: Optional[datetime] = Field(
        default=None, description="Remote last-modified timestamp"
    )
    drive_thumbnail_url: Optional[str] = Field(
        default=None, description="Thumbnail link reported by Drive"
    )


class ThumbnailCacheEntry(BaseModel):
    """Bookkeeping for one cached (asset, size) thumbnail."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    asset_id: int
    size: str
    cached_path: Path
    cache_version: str
    cached_at: datetime


class ThumbnailCacheResult(BaseModel):
    """Outcome of ``fetch_and_cache_thumbnail``.

    Attributes
    ----------
    path : Path
        Local file holding the thumbnail bytes.
    serving_url : str
        Application route that streams the cached file.
    cached : bool
        ``True`` when served from cache without a remote call.
    expires_at : datetime
        When the entry leaves the retention window.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    serving_url: str
    cached: bool
    expires_at: datetime


class ThumbnailCacheStats(BaseModel):
    """Statistics about the thumbnail cache contents.

    Attributes
    ----------
    total_cached : int
        Number of cache entries recorded in bookkeeping.
    cache_size : int
        Total bytes occupied by files under the cache root.
    file_count : int
        Number of thumbnail files found under the cache root.
    oldest_cache : datetime | None
        Earliest ``cached_at`` among recorded entries.
    newest_cache : datetime | None
        Latest ``cached_at`` among recorded entries.
    """

    total_cached: int
    cache_size: int
    file_count: int = 0
    oldest_cache: datetime | None = None
    newest_cache: datetime | None = None
