"""
Google Drive thumbnail client.

Resolves Drive v3 thumbnail links for files and downloads the image bytes,
validating every response before it reaches the thumbnail cache.
"""

from __future__ import annotations

import logging
import re

import httpx

from brandguide.config.settings import Settings
from brandguide.exceptions import ThumbnailFetchError
from brandguide.services.interfaces import ThumbnailFetcherInterface

logger = logging.getLogger(__name__)

_DRIVE_API_BASE_URL = "https://www.googleapis.com/drive/v3"
_REQUEST_TIMEOUT_SECONDS = 10.0
_MAX_IMAGE_BYTES = 5 * 1024 * 1024

# Drive thumbnail links end in a sizing directive such as ``=s220``
_SIZE_DIRECTIVE = re.compile(r"=s\d+")


def sized_thumbnail_url(url: str, pixels: int) -> str:
    """Rewrite a Drive thumbnail link's ``=s<px>`` directive to ``pixels``.

    Links without the directive are returned unchanged.

    Examples
    --------
    >>> sized_thumbnail_url("https://lh3.googleusercontent.com/abc=s220", 400)
    'https://lh3.googleusercontent.com/abc=s400'
    """
    return _SIZE_DIRECTIVE.sub(f"=s{int(pixels)}", url, count=1)


class DriveThumbnailFetcher(ThumbnailFetcherInterface):
    """
    Async client for Drive file thumbnails.

    Parameters
    ----------
    access_token : str
        OAuth bearer token for the Drive API. Only sent to the Drive API
        itself, never to the thumbnail host.
    base_url : str, optional
        Drive v3 API root.
    timeout : float, optional
        Per-request timeout in seconds.
    max_bytes : int, optional
        Largest accepted thumbnail payload.
    transport : httpx.AsyncBaseTransport | None, optional
        Transport override, mainly for tests (``httpx.MockTransport``).

    Examples
    --------
    >>> fetcher = DriveThumbnailFetcher(access_token="ya29...")
    >>> link = await fetcher.resolve_thumbnail_link("1AbCdEf")
    >>> data = await fetcher.fetch_bytes(sized_thumbnail_url(link, 400))
    """

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str = _DRIVE_API_BASE_URL,
        timeout: float = _REQUEST_TIMEOUT_SECONDS,
        max_bytes: int = _MAX_IMAGE_BYTES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_bytes = max_bytes
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> DriveThumbnailFetcher:
        """Build a fetcher from application settings."""
        return cls(
            access_token=settings.drive_access_token,
            base_url=settings.drive_api_base_url,
            timeout=settings.thumbnail_fetch_timeout,
            max_bytes=settings.thumbnail_max_bytes,
            transport=transport,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            follow_redirects=True,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _get(self, url: str, **kwargs: object) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.get(url, **kwargs)  # type: ignore[arg-type]
        except httpx.TimeoutException as exc:
            logger.warning("Timeout fetching %s", url)
            raise ThumbnailFetchError(
                f"Timed out fetching {url}", url=url, original_error=exc
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("HTTP error fetching %s: %s", url, exc)
            raise ThumbnailFetchError(
                f"HTTP error fetching {url}: {exc}", url=url, original_error=exc
            ) from exc

    async def resolve_thumbnail_link(self, remote_file_id: str) -> str:
        url = f"{self._base_url}/files/{remote_file_id}"
        headers = {}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        response = await self._get(
            url, params={"fields": "thumbnailLink"}, headers=headers
        )

        if response.status_code != 200:
            logger.warning(
                "Drive API returned %d for file %s",
                response.status_code,
                remote_file_id,
            )
            raise ThumbnailFetchError(
                f"Drive API returned status {response.status_code} "
                f"for file {remote_file_id}",
                url=url,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ThumbnailFetchError(
                f"Drive API returned invalid JSON for file {remote_file_id}",
                url=url,
                original_error=exc,
            ) from exc

        link = payload.get("thumbnailLink") if isinstance(payload, dict) else None
        if not link:
            raise ThumbnailFetchError(
                f"No thumbnail available for Drive file {remote_file_id}", url=url
            )
        return str(link)

    async def fetch_bytes(self, url: str) -> bytes:
        response = await self._get(url)

        if response.status_code != 200:
            logger.warning("Unexpected status %d fetching thumbnail %s", response.status_code, url)
            raise ThumbnailFetchError(
                f"Thumbnail download returned status {response.status_code}",
                url=url,
            )

        content_type = response.headers.get("content-type", "")
        if "image/" not in content_type:
            logger.warning("Non-image content-type '%s' from %s", content_type, url)
            raise ThumbnailFetchError(
                f"Invalid thumbnail content type: {content_type or 'missing'}",
                url=url,
            )

        body = response.content
        if not body:
            raise ThumbnailFetchError("Empty thumbnail payload", url=url)
        if len(body) > self._max_bytes:
            logger.warning("Thumbnail too large (%d bytes) from %s", len(body), url)
            raise ThumbnailFetchError(
                f"Thumbnail too large ({len(body)} bytes)", url=url
            )
        return body
