"""
Service interfaces (ABCs) for the brandguide application.

These abstract base classes define the capabilities the thumbnail cache
consumes, so the cache logic can be exercised with test doubles instead of
a real network, disk or database.
"""

from .byte_store_interface import ByteStoreInterface
from .metadata_store_interface import MetadataStoreInterface
from .thumbnail_fetcher_interface import ThumbnailFetcherInterface

__all__ = [
    "ByteStoreInterface",
    "MetadataStoreInterface",
    "ThumbnailFetcherInterface",
]
