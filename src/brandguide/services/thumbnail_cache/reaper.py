"""
Background task that periodically reclaims expired thumbnails.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from brandguide.services.thumbnail_cache.service import ThumbnailCacheService

logger = logging.getLogger(__name__)


class ExpiryReaper:
    """Runs ``clear_expired_thumbnails`` every ``interval`` seconds.

    Parameters
    ----------
    service : ThumbnailCacheService
        Cache whose expired entries are reclaimed.
    interval : float
        Seconds between passes; must be positive.
    """

    def __init__(self, service: ThumbnailCacheService, interval: float) -> None:
        if interval <= 0:
            raise ValueError("Reaper interval must be positive")
        self._service = service
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Run a single reaping pass and return the number reclaimed."""
        return await self._service.clear_expired_thumbnails()

    def start(self) -> None:
        """Start the background loop (no-op when already running)."""
        if self.is_running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="thumbnail-expiry-reaper")
        logger.info("Thumbnail expiry reaper started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        """Stop the background loop and wait for it to exit."""
        if self._task is None:
            return
        self._stopping.set()
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Thumbnail expiry reaper stopped")

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self._interval)
                break
            except TimeoutError:
                pass
            try:
                await self.run_once()
            except Exception:
                logger.exception("Thumbnail expiry pass failed; retrying next interval")
