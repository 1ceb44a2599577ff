"""
Abstract Base Class for remote thumbnail providers.

The cloud-drive client is consumed as an opaque capability: it can resolve
a thumbnail link for a remote file and download raw bytes from a URL.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ThumbnailFetcherInterface(ABC):
    """
    Abstract interface for retrieving thumbnails from a remote provider.

    Implementations should raise ``ThumbnailFetchError`` for every transport,
    HTTP status or payload validation failure so callers can treat them
    uniformly.

    Examples
    --------
    >>> class StaticFetcher(ThumbnailFetcherInterface):
    ...     async def resolve_thumbnail_link(self, remote_file_id: str) -> str:
    ...         return f"https://example.test/{remote_file_id}=s220"
    ...     async def fetch_bytes(self, url: str) -> bytes:
    ...         return b"\\xff\\xd8\\xff"
    """

    @abstractmethod
    async def resolve_thumbnail_link(self, remote_file_id: str) -> str:
        """
        Resolve the provider's thumbnail link for a remote file.

        Parameters
        ----------
        remote_file_id : str
            Identifier of the file at the remote provider.

        Returns
        -------
        str
            URL from which thumbnail bytes can be downloaded.

        Raises
        ------
        ThumbnailFetchError
            If the file has no thumbnail or the provider call fails.
        """
        pass

    @abstractmethod
    async def fetch_bytes(self, url: str) -> bytes:
        """
        Download raw thumbnail bytes.

        Parameters
        ----------
        url : str
            Thumbnail URL to download.

        Returns
        -------
        bytes
            The image payload.

        Raises
        ------
        ThumbnailFetchError
            If the download fails or the payload is not an image.
        """
        pass
