"""
Repository layer for data access patterns.

This module provides repository implementations following the Repository
pattern for clean separation of cache logic and data persistence.
"""

from .asset_repository import AssetRepository
from .base import BaseSQLAlchemyRepository
from .thumbnail_cache_repository import (
    SQLAlchemyMetadataStore,
    ThumbnailCacheRepository,
)

__all__ = [
    "AssetRepository",
    "BaseSQLAlchemyRepository",
    "SQLAlchemyMetadataStore",
    "ThumbnailCacheRepository",
]
