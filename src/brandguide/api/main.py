"""FastAPI application for brandguide API."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from brandguide import __version__
from brandguide.api.deps import close_thumbnail_cache_service, get_thumbnail_cache_service
from brandguide.api.exception_handlers import register_exception_handlers
from brandguide.api.routers import thumbnails
from brandguide.config.database import db_manager
from brandguide.config.settings import settings
from brandguide.services.thumbnail_cache import ExpiryReaper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Startup
    reaper: ExpiryReaper | None = None
    if settings.thumbnail_reap_interval > 0:
        reaper = ExpiryReaper(
            get_thumbnail_cache_service(), interval=settings.thumbnail_reap_interval
        )
        reaper.start()
    yield
    # Shutdown
    if reaper is not None:
        await reaper.stop()
    await close_thumbnail_cache_service()
    await db_manager.close()


app = FastAPI(
    title="Brandguide API",
    description="Brand asset API with cached Google Drive thumbnails",
    version=__version__,
    lifespan=lifespan,
)

register_exception_handlers(app)


def _get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxied requests."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        # First IP in the chain is the original client
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host
    return "unknown"


@app.middleware("http")
async def log_requests(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """
    Middleware to log incoming requests and outgoing responses.

    Logs response status code and timing with a level matching the status:
    INFO for 2xx/3xx, WARNING for 4xx and ERROR for 5xx.
    """
    start_time = time.perf_counter()
    method = request.method
    path = request.url.path

    logger.info("Request: %s %s from %s", method, path, _get_client_ip(request))

    response = await call_next(request)

    duration = time.perf_counter() - start_time
    status_code = response.status_code
    if status_code >= 500:
        log_level = logging.ERROR
    elif status_code >= 400:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO

    logger.log(
        log_level,
        "Response: %s %s - %d (%.3fs)",
        method,
        path,
        status_code,
        duration,
    )
    return response


app.include_router(thumbnails.router, prefix="/api", tags=["thumbnails"])
