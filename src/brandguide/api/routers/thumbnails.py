"""Drive thumbnail endpoints.

This module provides REST API endpoints for cached Google Drive thumbnails:

- GET /assets/{asset_id}/thumbnail: serve the thumbnail image
- POST /assets/{asset_id}/thumbnail/refresh: ensure a current cache entry
- DELETE /assets/{asset_id}/thumbnail/cache: invalidate an asset's cache
- GET /thumbnail-cache/stats: cache statistics
- POST /thumbnail-cache/clear-expired: reclaim expired entries

Image responses fall back to a stale cached file or an SVG placeholder when
the remote fetch fails, so the asset grid never shows a broken image.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path as FilePath

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from starlette.responses import Response

from brandguide.api.deps import get_thumbnail_cache_service, get_thumbnail_fetcher
from brandguide.exceptions import ThumbnailCacheError
from brandguide.models.enums import ThumbnailSize
from brandguide.models.thumbnail import (
    AssetRecord,
    ThumbnailCacheResult,
    ThumbnailCacheStats,
)
from brandguide.services.interfaces import ThumbnailFetcherInterface
from brandguide.services.thumbnail_cache import ThumbnailCacheService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["thumbnails"])

# ---------------------------------------------------------------------------
# Cache-Control headers
# ---------------------------------------------------------------------------
_CACHE_CONTROL_HIT = "private, max-age=3600"
_CACHE_CONTROL_FALLBACK = "no-cache"

_PLACEHOLDER_SVG = (
    b'<svg xmlns="http://www.w3.org/2000/svg" width="400" height="400" '
    b'viewBox="0 0 400 400">'
    b'<rect width="400" height="400" fill="#e2e8f0"/>'
    b'<rect x="120" y="110" width="160" height="180" rx="12" fill="#94a3b8"/>'
    b'<polyline points="140,250 185,195 215,230 240,205 260,250" '
    b'fill="none" stroke="#e2e8f0" stroke-width="10"/>'
    b"</svg>"
)

_IMAGE_RESPONSES: dict[int | str, dict[str, object]] = {
    200: {
        "content": {
            "image/jpeg": {},
            "image/png": {},
            "image/webp": {},
            "image/svg+xml": {},
        },
        "description": "Thumbnail image or SVG placeholder",
    },
    404: {"description": "Asset not found"},
    422: {"description": "Unsupported thumbnail size"},
}

_SIZE_QUERY = Query(
    default=ThumbnailSize.MEDIUM.value,
    description="Thumbnail size (small, medium or large by default)",
)


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def _detect_content_type(header: bytes) -> str:
    """Detect image content type from leading magic bytes."""
    if header[:2] == b"\xff\xd8":
        return "image/jpeg"
    if header[:4] == b"\x89PNG":
        return "image/png"
    if header[:4] == b"RIFF" and header[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def _serve_placeholder() -> Response:
    return Response(
        content=_PLACEHOLDER_SVG,
        media_type="image/svg+xml",
        headers={
            "Cache-Control": _CACHE_CONTROL_FALLBACK,
            "X-Cache": "PLACEHOLDER",
        },
    )


async def _serve_cached_file(path: FilePath, cache_status: str) -> Response:
    try:
        body = await asyncio.to_thread(path.read_bytes)
    except OSError:
        logger.warning("Cached thumbnail vanished before serving: %s", path)
        return _serve_placeholder()
    return Response(
        content=body,
        media_type=_detect_content_type(body[:12]),
        headers={
            "Cache-Control": (
                _CACHE_CONTROL_HIT if cache_status != "STALE" else _CACHE_CONTROL_FALLBACK
            ),
            "X-Cache": cache_status,
        },
    )


def _has_drive_metadata(asset: AssetRecord) -> bool:
    return bool(asset.drive_file_id) and asset.drive_last_modified is not None


# ---------------------------------------------------------------------------
# Per-asset endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/assets/{asset_id}/thumbnail",
    responses=_IMAGE_RESPONSES,
    response_class=Response,
)
async def get_asset_thumbnail(
    asset_id: int = Path(..., ge=1, description="Asset identifier"),
    size: str = _SIZE_QUERY,
    service: ThumbnailCacheService = Depends(get_thumbnail_cache_service),
    fetcher: ThumbnailFetcherInterface = Depends(get_thumbnail_fetcher),
) -> Response:
    """Serve a Drive asset's thumbnail, fetching and caching on a miss.

    Parameters
    ----------
    asset_id : int
        Asset identifier.
    size : str
        Requested thumbnail size.

    Returns
    -------
    Response
        Image bytes with ``X-Cache`` set to ``HIT``, ``MISS`` or ``STALE``,
        or an SVG placeholder with ``X-Cache: PLACEHOLDER``.
    """
    size_name = service.resolve_size(size)
    asset = await service.get_asset(asset_id)
    if not _has_drive_metadata(asset):
        logger.debug("Asset %s has no Drive metadata; serving placeholder", asset_id)
        return _serve_placeholder()

    assert asset.drive_file_id is not None
    assert asset.drive_last_modified is not None
    try:
        result = await service.fetch_and_cache_thumbnail(
            fetcher,
            asset_id=asset.id,
            remote_file_id=asset.drive_file_id,
            modified_at=asset.drive_last_modified,
            thumbnail_url_hint=asset.drive_thumbnail_url,
            size=size_name,
        )
    except ThumbnailCacheError as exc:
        logger.info(
            "Thumbnail refresh failed for asset %s (%s): %s; falling back",
            asset_id,
            size_name,
            exc.message,
        )
        stale_path = await service.get_cached_thumbnail_path(asset_id, size_name)
        if stale_path is not None:
            return await _serve_cached_file(stale_path, "STALE")
        return _serve_placeholder()

    return await _serve_cached_file(result.path, "HIT" if result.cached else "MISS")


@router.post(
    "/assets/{asset_id}/thumbnail/refresh",
    response_model=ThumbnailCacheResult,
    responses={
        404: {"description": "Asset not found or has no Drive thumbnail"},
        422: {"description": "Unsupported size or unversionable modification time"},
        502: {"description": "Drive thumbnail could not be fetched"},
    },
)
async def refresh_asset_thumbnail(
    asset_id: int = Path(..., ge=1, description="Asset identifier"),
    size: str = _SIZE_QUERY,
    service: ThumbnailCacheService = Depends(get_thumbnail_cache_service),
    fetcher: ThumbnailFetcherInterface = Depends(get_thumbnail_fetcher),
) -> ThumbnailCacheResult:
    """Ensure a current cache entry exists for one asset and size."""
    size_name = service.resolve_size(size)
    asset = await service.get_asset(asset_id)
    if not _has_drive_metadata(asset):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": "NO_THUMBNAIL",
                "message": f"Asset {asset_id} has no Drive thumbnail",
            },
        )

    assert asset.drive_file_id is not None
    assert asset.drive_last_modified is not None
    return await service.fetch_and_cache_thumbnail(
        fetcher,
        asset_id=asset.id,
        remote_file_id=asset.drive_file_id,
        modified_at=asset.drive_last_modified,
        thumbnail_url_hint=asset.drive_thumbnail_url,
        size=size_name,
    )


@router.delete("/assets/{asset_id}/thumbnail/cache")
async def invalidate_asset_thumbnail(
    asset_id: int = Path(..., ge=1, description="Asset identifier"),
    service: ThumbnailCacheService = Depends(get_thumbnail_cache_service),
) -> dict[str, object]:
    """Invalidate every cached size of an asset."""
    await service.invalidate_thumbnail_cache(asset_id)
    return {"asset_id": asset_id, "invalidated": True}


# ---------------------------------------------------------------------------
# Cache administration
# ---------------------------------------------------------------------------


@router.get("/thumbnail-cache/stats", response_model=ThumbnailCacheStats)
async def get_thumbnail_cache_stats(
    service: ThumbnailCacheService = Depends(get_thumbnail_cache_service),
) -> ThumbnailCacheStats:
    """Report thumbnail cache statistics."""
    return await service.get_thumbnail_cache_stats()


@router.post("/thumbnail-cache/clear-expired")
async def clear_expired_thumbnails(
    service: ThumbnailCacheService = Depends(get_thumbnail_cache_service),
) -> dict[str, int]:
    """Reclaim thumbnails older than the retention window."""
    cleared = await service.clear_expired_thumbnails()
    return {"cleared": cleared}
