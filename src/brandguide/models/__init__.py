"""
Pydantic models for the brandguide thumbnail cache.
"""

from __future__ import annotations

from .enums import ThumbnailSize
from .thumbnail import (
    AssetRecord,
    ThumbnailCacheEntry,
    ThumbnailCacheResult,
    ThumbnailCacheStats,
)

__all__ = [
    "AssetRecord",
    "ThumbnailCacheEntry",
    "ThumbnailCacheResult",
    "ThumbnailCacheStats",
    "ThumbnailSize",
]
