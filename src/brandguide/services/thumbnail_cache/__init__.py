"""
Remote Drive thumbnail cache.

Exports the cache service, its configuration, storage and versioning
helpers, and the background expiry reaper.
"""

from .disk_store import DiskStore
from .reaper import ExpiryReaper
from .service import ThumbnailCacheConfig, ThumbnailCacheService
from .single_flight import KeyedLock, SingleFlight
from .versioning import ParsedThumbnailPath, VersionResolver, version_tag

__all__ = [
    "DiskStore",
    "ExpiryReaper",
    "KeyedLock",
    "ParsedThumbnailPath",
    "SingleFlight",
    "ThumbnailCacheConfig",
    "ThumbnailCacheService",
    "VersionResolver",
    "version_tag",
]
