"""Exception handlers mapping thumbnail cache errors to HTTP responses.

Domain exceptions raised by the cache service are converted to JSON bodies
of the form ``{"detail": {"code": ..., "message": ...}}``, matching the
shape produced by ``HTTPException`` with a dict detail.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from brandguide.exceptions import (
    AssetNotFoundError,
    InvalidModifiedTimeError,
    InvalidSizeError,
    StorageError,
    ThumbnailFetchError,
)

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": {"code": code, "message": message}},
    )


async def asset_not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unknown asset -> 404."""
    assert isinstance(exc, AssetNotFoundError)
    return _error_response(status.HTTP_404_NOT_FOUND, "ASSET_NOT_FOUND", exc.message)


async def invalid_size_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unsupported thumbnail size -> 422."""
    assert isinstance(exc, InvalidSizeError)
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_SIZE", exc.message
    )


async def invalid_modified_time_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Asset modification time without a version tag -> 422."""
    assert isinstance(exc, InvalidModifiedTimeError)
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_MODIFIED_TIME", exc.message
    )


async def thumbnail_fetch_handler(request: Request, exc: Exception) -> JSONResponse:
    """Remote fetch failure -> 502."""
    assert isinstance(exc, ThumbnailFetchError)
    logger.warning("Thumbnail fetch failed for %s: %s", request.url.path, exc.message)
    return _error_response(
        status.HTTP_502_BAD_GATEWAY, "THUMBNAIL_FETCH_FAILED", exc.message
    )


async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Local storage failure -> 500."""
    assert isinstance(exc, StorageError)
    logger.error("Thumbnail storage failed for %s: %s", request.url.path, exc.message)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "THUMBNAIL_STORAGE_FAILED",
        "Failed to store thumbnail",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the thumbnail cache exception handlers on ``app``."""
    app.add_exception_handler(AssetNotFoundError, asset_not_found_handler)
    app.add_exception_handler(InvalidSizeError, invalid_size_handler)
    app.add_exception_handler(InvalidModifiedTimeError, invalid_modified_time_handler)
    app.add_exception_handler(ThumbnailFetchError, thumbnail_fetch_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
