"""FastAPI dependencies for API endpoints."""

from brandguide.config.database import db_manager
from brandguide.config.settings import settings
from brandguide.repositories import SQLAlchemyMetadataStore
from brandguide.services.drive_client import DriveThumbnailFetcher
from brandguide.services.interfaces import ThumbnailFetcherInterface
from brandguide.services.thumbnail_cache import (
    ThumbnailCacheConfig,
    ThumbnailCacheService,
)

# Module-level singleton: one cache service per process
_thumbnail_cache_service: ThumbnailCacheService | None = None


def get_thumbnail_cache_service() -> ThumbnailCacheService:
    """
    Dependency for the Drive thumbnail cache service.

    The service is created on first use from application settings and then
    shared, so single-flight coalescing and the fetch semaphore apply across
    all requests.

    Returns
    -------
    ThumbnailCacheService
        The process-wide cache service.
    """
    global _thumbnail_cache_service
    if _thumbnail_cache_service is None:
        settings.create_directories()
        _thumbnail_cache_service = ThumbnailCacheService(
            config=ThumbnailCacheConfig.from_settings(settings),
            metadata_store=SQLAlchemyMetadataStore(db_manager.get_session_factory()),
        )
    return _thumbnail_cache_service


async def close_thumbnail_cache_service() -> None:
    """Shut down the shared cache service, if one was created."""
    global _thumbnail_cache_service
    if _thumbnail_cache_service is not None:
        await _thumbnail_cache_service.shutdown()
        _thumbnail_cache_service = None


def get_thumbnail_fetcher() -> ThumbnailFetcherInterface:
    """
    Dependency for the remote thumbnail provider.

    Returns
    -------
    ThumbnailFetcherInterface
        A Drive client configured from application settings.
    """
    return DriveThumbnailFetcher.from_settings(settings)
