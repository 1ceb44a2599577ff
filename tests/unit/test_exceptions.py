"""
Tests for brandguide exception types.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from brandguide.exceptions import (
    AssetNotFoundError,
    BrandguideError,
    InvalidModifiedTimeError,
    InvalidSizeError,
    StorageError,
    ThumbnailCacheError,
    ThumbnailFetchError,
)


class TestExceptionHierarchy:
    """Tests for the exception class hierarchy."""

    def test_population_failures_share_a_base(self) -> None:
        assert issubclass(ThumbnailFetchError, ThumbnailCacheError)
        assert issubclass(StorageError, ThumbnailCacheError)
        assert issubclass(InvalidModifiedTimeError, ThumbnailCacheError)
        assert issubclass(ThumbnailCacheError, BrandguideError)

    def test_caller_errors_are_not_population_failures(self) -> None:
        assert not issubclass(AssetNotFoundError, ThumbnailCacheError)
        assert not issubclass(InvalidSizeError, ThumbnailCacheError)


class TestExceptionAttributes:
    """Tests for exception payloads and messages."""

    def test_asset_not_found(self) -> None:
        exc = AssetNotFoundError(888888)

        assert exc.asset_id == 888888
        assert exc.message == "Asset not found: 888888"
        assert str(exc) == exc.message

    def test_invalid_size_lists_allowed_sizes(self) -> None:
        exc = InvalidSizeError("huge", {"small": 200, "large": 800})

        assert exc.size == "huge"
        assert exc.allowed == ("small", "large")
        assert exc.message == (
            "Unsupported thumbnail size: huge (expected one of: small, large)"
        )

    def test_fetch_error_keeps_url_and_cause(self) -> None:
        cause = TimeoutError()
        exc = ThumbnailFetchError("Timed out", url="https://x", original_error=cause)

        assert exc.url == "https://x"
        assert exc.original_error is cause

    def test_storage_error_defaults(self) -> None:
        exc = StorageError(path=Path("/cache/1/1_small_0.jpg"))

        assert exc.message == "Thumbnail cache storage operation failed"
        assert exc.path == Path("/cache/1/1_small_0.jpg")
        assert exc.original_error is None

    def test_invalid_modified_time_keeps_timestamp(self) -> None:
        modified = datetime(1969, 12, 31, 23, 0, tzinfo=timezone.utc)
        exc = InvalidModifiedTimeError(modified)

        assert exc.modified_at == modified
        assert exc.message == (
            "Modification time precedes the Unix epoch: 1969-12-31T23:00:00+00:00"
        )
