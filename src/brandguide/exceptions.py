"""
Custom exceptions for the brandguide application.

This module defines domain-specific exceptions for the remote thumbnail
cache: caller errors (unknown asset, unsupported size) and population
failures (unversionable timestamp, remote fetch, local storage).
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from pathlib import Path


class BrandguideError(Exception):
    """Base exception for all brandguide errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize BrandguideError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        """
        self.message = message
        super().__init__(message)


class AssetNotFoundError(BrandguideError):
    """
    Exception raised when an asset id does not reference an existing asset.

    This is a caller error: it is surfaced immediately and never retried.

    Attributes
    ----------
    asset_id : int
        The asset id that could not be found.

    Examples
    --------
    >>> try:
    ...     await service.fetch_and_cache_thumbnail(fetcher, 888888, "f", now)
    ... except AssetNotFoundError as e:
    ...     print(f"Unknown asset {e.asset_id}")
    """

    def __init__(self, asset_id: int, message: str | None = None) -> None:
        """
        Initialize AssetNotFoundError.

        Parameters
        ----------
        asset_id : int
            The asset id that could not be found.
        message : str | None, optional
            Override for the default "Asset not found" message.
        """
        self.asset_id = asset_id
        super().__init__(message or f"Asset not found: {asset_id}")


class InvalidSizeError(BrandguideError):
    """
    Exception raised when an unsupported thumbnail size is requested.

    Attributes
    ----------
    size : str
        The rejected size value.
    allowed : tuple[str, ...]
        Sizes enabled in the current configuration.
    """

    def __init__(self, size: object, allowed: Iterable[str] = ()) -> None:
        self.size = str(size)
        self.allowed = tuple(allowed)
        message = f"Unsupported thumbnail size: {self.size}"
        if self.allowed:
            message += f" (expected one of: {', '.join(self.allowed)})"
        super().__init__(message)


class ThumbnailCacheError(BrandguideError):
    """
    Base exception for failures while populating the thumbnail cache.

    When raised, the asset's cache bookkeeping has been left untouched, so a
    previously valid entry continues to serve.
    """


class InvalidModifiedTimeError(ThumbnailCacheError):
    """
    Exception raised when a remote modification time cannot be versioned.

    Version tags count microseconds since the Unix epoch, so earlier
    timestamps have no tag.

    Attributes
    ----------
    modified_at : datetime
        The rejected timestamp.
    """

    def __init__(self, modified_at: datetime) -> None:
        self.modified_at = modified_at
        super().__init__(
            f"Modification time precedes the Unix epoch: {modified_at.isoformat()}"
        )


class ThumbnailFetchError(ThumbnailCacheError):
    """
    Exception raised when a thumbnail could not be obtained remotely.

    Covers thumbnail link resolution, byte download, response validation
    and timeouts.

    Attributes
    ----------
    url : str | None
        The URL that was being fetched, when known.
    original_error : Exception | None
        The underlying transport exception, if any.
    """

    def __init__(
        self,
        message: str = "Failed to download Drive thumbnail",
        url: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.url = url
        self.original_error = original_error
        super().__init__(message)


class StorageError(ThumbnailCacheError):
    """
    Exception raised when the local cache directory cannot be written.

    Attributes
    ----------
    path : Path | None
        The file path involved in the failed operation.
    original_error : Exception | None
        The underlying ``OSError``.
    """

    def __init__(
        self,
        message: str = "Thumbnail cache storage operation failed",
        path: Path | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.path = path
        self.original_error = original_error
        super().__init__(message)


# Exit codes for CLI commands
EXIT_CODE_SUCCESS = 0
EXIT_CODE_GENERAL_ERROR = 1
EXIT_CODE_INVALID_ARGS = 2
EXIT_CODE_INTERRUPTED = 130  # Standard Unix signal interrupt exit code
