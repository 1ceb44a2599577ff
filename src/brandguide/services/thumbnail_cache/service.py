"""
Drive thumbnail cache service.

Keeps local copies of Google Drive thumbnails keyed by asset and size, with
bookkeeping in the asset database as the source of truth. Entries are
versioned by the remote modification time and retained for a configurable
window; concurrent misses for the same key share a single remote fetch.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from brandguide.config.settings import Settings
from brandguide.exceptions import (
    AssetNotFoundError,
    InvalidSizeError,
    StorageError,
    ThumbnailCacheError,
    ThumbnailFetchError,
)
from brandguide.models.enums import ThumbnailSize
from brandguide.models.thumbnail import (
    AssetRecord,
    ThumbnailCacheEntry,
    ThumbnailCacheResult,
    ThumbnailCacheStats,
)
from brandguide.services.drive_client import sized_thumbnail_url
from brandguide.services.interfaces import (
    ByteStoreInterface,
    MetadataStoreInterface,
    ThumbnailFetcherInterface,
)
from brandguide.services.thumbnail_cache.disk_store import DiskStore
from brandguide.services.thumbnail_cache.single_flight import KeyedLock, SingleFlight
from brandguide.services.thumbnail_cache.versioning import VersionResolver

logger = logging.getLogger(__name__)

_SIZE_NAME = re.compile(r"^[a-z0-9-]+$")
_SERVING_URL = "/api/assets/{asset_id}/thumbnail?size={size}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ╔══════════════════════════════════════════════════════════════════════╗
# ║  Configuration                                                      ║
# ╚══════════════════════════════════════════════════════════════════════╝


class ThumbnailCacheConfig(BaseModel):
    """Configuration for the Drive thumbnail cache.

    Attributes
    ----------
    cache_dir : Path
        Root directory for cached thumbnails.
    ttl : timedelta
        Retention window measured from ``cached_at``.
    fetch_timeout : float
        Upper bound in seconds for the remote step of one population.
    max_concurrent_fetches : int
        Maximum concurrent remote fetches (semaphore limit).
    sizes : dict[str, int]
        Enabled size names and their pixel dimensions.
    default_size : str
        Size preferred when a caller does not name one.
    """

    cache_dir: Path
    ttl: timedelta = timedelta(days=7)
    fetch_timeout: float = 10.0
    max_concurrent_fetches: int = Field(default=5, ge=1)
    sizes: dict[str, int] = Field(
        default_factory=lambda: {"small": 200, "medium": 400, "large": 800}
    )
    default_size: str = ThumbnailSize.MEDIUM.value

    @field_validator("ttl")
    @classmethod
    def validate_ttl(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("ttl must be positive")
        return v

    @field_validator("sizes")
    @classmethod
    def validate_sizes(cls, v: dict[str, int]) -> dict[str, int]:
        if not v:
            raise ValueError("At least one thumbnail size must be enabled")
        for name, pixels in v.items():
            if not _SIZE_NAME.match(name):
                raise ValueError(f"Invalid thumbnail size name: {name!r}")
            if pixels <= 0:
                raise ValueError(f"Thumbnail size '{name}' must be positive")
        return v

    @model_validator(mode="after")
    def validate_default_size(self) -> ThumbnailCacheConfig:
        if self.default_size not in self.sizes:
            raise ValueError(
                f"Default size '{self.default_size}' is not an enabled size"
            )
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> ThumbnailCacheConfig:
        """Derive the cache configuration from application settings."""
        sizes = dict(settings.thumbnail_sizes)
        default_size = (
            ThumbnailSize.MEDIUM.value
            if ThumbnailSize.MEDIUM.value in sizes
            else next(iter(sizes))
        )
        return cls(
            cache_dir=settings.thumbnail_cache_dir,
            ttl=timedelta(days=settings.thumbnail_ttl_days),
            fetch_timeout=settings.thumbnail_fetch_timeout,
            max_concurrent_fetches=settings.thumbnail_max_concurrent_fetches,
            sizes=sizes,
            default_size=default_size,
        )


# ╔══════════════════════════════════════════════════════════════════════╗
# ║  ThumbnailCacheService                                              ║
# ╚══════════════════════════════════════════════════════════════════════╝


class ThumbnailCacheService:
    """Cache of remote Drive thumbnails on local disk.

    Parameters
    ----------
    config : ThumbnailCacheConfig
        Cache configuration.
    metadata_store : MetadataStoreInterface
        Bookkeeping store; the source of truth for what is cached.
    byte_store : ByteStoreInterface | None
        Storage for thumbnail bytes. Defaults to a ``DiskStore`` rooted at
        ``config.cache_dir``.
    clock : Callable[[], datetime] | None
        Source of the current UTC time.
    """

    def __init__(
        self,
        config: ThumbnailCacheConfig,
        metadata_store: MetadataStoreInterface,
        byte_store: ByteStoreInterface | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._metadata_store = metadata_store
        self._byte_store = byte_store or DiskStore(config.cache_dir)
        self._resolver = VersionResolver(self._byte_store.root)
        self._clock = clock or _utcnow
        self._semaphore = asyncio.Semaphore(config.max_concurrent_fetches)
        self._flights: SingleFlight[tuple[int, str], ThumbnailCacheResult] = (
            SingleFlight()
        )
        self._key_locks: KeyedLock[tuple[int, str]] = KeyedLock()
        self._closed = False

    @property
    def config(self) -> ThumbnailCacheConfig:
        return self._config

    @property
    def resolver(self) -> VersionResolver:
        return self._resolver

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def resolve_size(self, size: ThumbnailSize | str | None) -> str:
        """Normalise a requested size and check that it is enabled.

        Raises
        ------
        InvalidSizeError
            If the size is not one of the configured sizes.
        """
        if size is None:
            return self._config.default_size
        name = size.value if isinstance(size, ThumbnailSize) else str(size)
        name = name.strip().lower()
        if name not in self._config.sizes:
            raise InvalidSizeError(name, self._config.sizes)
        return name

    @staticmethod
    def serving_url(asset_id: int, size: str) -> str:
        """Application route that streams the cached thumbnail."""
        return _SERVING_URL.format(asset_id=asset_id, size=size)

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    def _result(self, entry: ThumbnailCacheEntry, cached: bool) -> ThumbnailCacheResult:
        return ThumbnailCacheResult(
            path=entry.cached_path,
            serving_url=self.serving_url(entry.asset_id, entry.size),
            cached=cached,
            expires_at=entry.cached_at + self._config.ttl,
        )

    async def _lookup_hit(
        self, asset_id: int, size: str, version: str
    ) -> ThumbnailCacheResult | None:
        entry = await self._metadata_store.get_entry(asset_id, size)
        if entry is None or entry.cache_version != version:
            return None
        if self._now() - entry.cached_at >= self._config.ttl:
            return None
        if not await self._byte_store.exists(entry.cached_path):
            logger.debug(
                "Cached file missing for asset %s (%s): %s",
                asset_id,
                size,
                entry.cached_path,
            )
            return None
        logger.debug("Cache HIT for asset %s (%s)", asset_id, size)
        return self._result(entry, cached=True)

    async def _discard(self, path: Path) -> None:
        try:
            await self._byte_store.delete(path)
        except StorageError:
            logger.warning("Failed to delete cached file %s", path, exc_info=True)

    async def get_asset(self, asset_id: int) -> AssetRecord:
        """Load an asset's Drive metadata.

        Raises
        ------
        AssetNotFoundError
            If the asset does not exist.
        """
        asset = await self._metadata_store.get_asset(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    # ------------------------------------------------------------------
    # Public API: fetch_and_cache_thumbnail
    # ------------------------------------------------------------------

    async def fetch_and_cache_thumbnail(
        self,
        fetcher: ThumbnailFetcherInterface,
        asset_id: int,
        remote_file_id: str,
        modified_at: datetime,
        thumbnail_url_hint: str | None = None,
        size: ThumbnailSize | str = ThumbnailSize.MEDIUM,
    ) -> ThumbnailCacheResult:
        """Return a valid cached thumbnail, populating the cache on a miss.

        Flow:
        1. Validate the size and load the asset.
        2. Serve from cache when the stored version matches, the entry is
           within the retention window and its file exists.
        3. Otherwise join or start the single flight for ``(asset, size)``,
           download the bytes, write them atomically, commit bookkeeping and
           remove the superseded file.
        4. A caller that joined a flight for an older version starts its own.

        Parameters
        ----------
        fetcher : ThumbnailFetcherInterface
            Remote provider used on a miss.
        asset_id : int
            Asset whose thumbnail is requested.
        remote_file_id : str
            Drive file identifier.
        modified_at : datetime
            Remote last-modified timestamp; determines the version.
        thumbnail_url_hint : str | None
            Known thumbnail link; skips link resolution when given.
        size : ThumbnailSize | str
            Requested size (default ``medium``).

        Returns
        -------
        ThumbnailCacheResult
            Local path, serving URL, whether it was a hit, and expiry.

        Raises
        ------
        InvalidSizeError
            If ``size`` is not enabled.
        AssetNotFoundError
            If ``asset_id`` does not exist.
        InvalidModifiedTimeError
            If ``modified_at`` precedes the Unix epoch.
        ThumbnailFetchError
            If the remote step fails or times out.
        StorageError
            If the bytes cannot be written locally.
        """
        if self._closed:
            raise ThumbnailCacheError("Thumbnail cache service is shut down")

        size_name = self.resolve_size(size)
        await self.get_asset(asset_id)

        version = self._resolver.version(modified_at)
        hit = await self._lookup_hit(asset_id, size_name, version)
        if hit is not None:
            return hit

        def populate() -> Awaitable[ThumbnailCacheResult]:
            return self._populate(
                fetcher,
                asset_id,
                size_name,
                remote_file_id,
                version,
                thumbnail_url_hint,
            )

        key = (asset_id, size_name)
        result = await self._flights.do(key, populate)
        parsed = self._resolver.parse(result.path)
        if parsed is not None and parsed.version < version:
            # Joined a flight started for an older modification time
            logger.debug(
                "Flight for asset %s (%s) produced version %s; refetching %s",
                asset_id,
                size_name,
                parsed.version,
                version,
            )
            result = await self._flights.do(key, populate)
        return result

    async def _populate(
        self,
        fetcher: ThumbnailFetcherInterface,
        asset_id: int,
        size: str,
        remote_file_id: str,
        version: str,
        thumbnail_url_hint: str | None,
    ) -> ThumbnailCacheResult:
        async with self._key_locks.hold((asset_id, size)):
            # A flight that finished just before this one may have filled it
            hit = await self._lookup_hit(asset_id, size, version)
            if hit is not None:
                return hit

            data = await self._download(
                fetcher, size, remote_file_id, thumbnail_url_hint
            )

            path = self._resolver.path(asset_id, size, version)
            previous = await self._metadata_store.get_entry(asset_id, size)
            written = False
            committed = False
            try:
                await self._byte_store.write(path, data)
                written = True
                entry = ThumbnailCacheEntry(
                    asset_id=asset_id,
                    size=size,
                    cached_path=path,
                    cache_version=version,
                    cached_at=self._now(),
                )
                await self._metadata_store.save_entry(entry)
                committed = True
            finally:
                if (
                    written
                    and not committed
                    and (previous is None or previous.cached_path != path)
                ):
                    await self._discard(path)

            if previous is not None and previous.cached_path != path:
                await self._discard(previous.cached_path)

        logger.info(
            "Cached Drive thumbnail for asset %s (%s, version %s, %d bytes)",
            asset_id,
            size,
            version,
            len(data),
        )
        return self._result(entry, cached=False)

    async def _download(
        self,
        fetcher: ThumbnailFetcherInterface,
        size: str,
        remote_file_id: str,
        thumbnail_url_hint: str | None,
    ) -> bytes:
        pixels = self._config.sizes[size]
        async with self._semaphore:
            try:
                async with asyncio.timeout(self._config.fetch_timeout):
                    link = thumbnail_url_hint or await fetcher.resolve_thumbnail_link(
                        remote_file_id
                    )
                    url = sized_thumbnail_url(link, pixels)
                    data = await fetcher.fetch_bytes(url)
            except TimeoutError as exc:
                logger.warning(
                    "Timed out after %.1fs fetching thumbnail for Drive file %s",
                    self._config.fetch_timeout,
                    remote_file_id,
                )
                raise ThumbnailFetchError(
                    f"Timed out after {self._config.fetch_timeout}s fetching "
                    f"thumbnail for Drive file {remote_file_id}",
                    original_error=exc,
                ) from exc
            except ThumbnailFetchError:
                logger.warning(
                    "Failed to fetch thumbnail for Drive file %s",
                    remote_file_id,
                    exc_info=True,
                )
                raise
        if not data:
            raise ThumbnailFetchError("Empty thumbnail payload", url=url)
        return data

    # ------------------------------------------------------------------
    # Public API: lookup, invalidation, expiry, stats
    # ------------------------------------------------------------------

    async def get_cached_thumbnail_path(
        self, asset_id: int, size: ThumbnailSize | str | None = None
    ) -> Path | None:
        """Return the local path of a cached thumbnail, if one is present.

        With no ``size``, the default size is preferred, then the most
        recently cached size. No remote revalidation happens here.
        """
        if size is not None:
            entry = await self._metadata_store.get_entry(
                asset_id, self.resolve_size(size)
            )
            candidates = [entry] if entry is not None else []
        else:
            entries = await self._metadata_store.list_entries(asset_id)
            candidates = sorted(
                entries,
                key=lambda e: (e.size != self._config.default_size, -e.cached_at.timestamp()),
            )
        for entry in candidates:
            if await self._byte_store.exists(entry.cached_path):
                return entry.cached_path
        return None

    async def invalidate_thumbnail_cache(self, asset_id: int) -> None:
        """Forget every cached size of an asset and delete its files.

        In-flight populations for the asset are allowed to settle first.
        Unknown assets and repeated calls are no-ops.
        """
        keys = [(asset_id, size) for size in self._config.sizes]
        async with self._key_locks.hold(*keys):
            cleared = await self._metadata_store.clear_entries(asset_id)
            paths = {entry.cached_path for entry in cleared}
            paths.update(
                await self._byte_store.list_files(self._resolver.asset_dir(asset_id))
            )
            for path in sorted(paths):
                await self._discard(path)
        logger.info(
            "Invalidated thumbnail cache for asset %s (%d entries, %d files)",
            asset_id,
            len(cleared),
            len(paths),
        )

    async def clear_expired_thumbnails(self) -> int:
        """Reclaim entries older than the retention window.

        Each entry is cleared only if it is unchanged since it was read, and
        the clear and file deletion hold the same per-key lock as population,
        so a concurrent refresh always wins.

        Returns
        -------
        int
            Number of entries reclaimed.
        """
        cutoff = self._now() - self._config.ttl
        expired = await self._metadata_store.list_expired(cutoff)
        reclaimed = 0
        for entry in expired:
            key = (entry.asset_id, entry.size)
            if self._flights.in_flight(key):
                continue
            async with self._key_locks.hold(key):
                if not await self._metadata_store.clear_entry_if_unchanged(entry):
                    logger.debug(
                        "Skipping refreshed entry for asset %s (%s)",
                        entry.asset_id,
                        entry.size,
                    )
                    continue
                await self._discard(entry.cached_path)
            reclaimed += 1
        await self._byte_store.cleanup_temp_files()
        if reclaimed:
            logger.info("Reclaimed %d expired thumbnail(s)", reclaimed)
        return reclaimed

    async def get_thumbnail_cache_stats(self) -> ThumbnailCacheStats:
        """Report cache counts from bookkeeping and bytes from disk."""
        total_cached = await self._metadata_store.count_entries()
        file_count, cache_size = await self._byte_store.aggregate()
        oldest, newest = await self._metadata_store.cached_at_bounds()
        return ThumbnailCacheStats(
            total_cached=total_cached,
            cache_size=cache_size,
            file_count=file_count,
            oldest_cache=oldest,
            newest_cache=newest,
        )

    async def shutdown(self) -> None:
        """Reject new work and cancel in-flight populations."""
        self._closed = True
        await self._flights.shutdown()
