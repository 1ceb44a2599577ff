"""
Abstract Base Class for durable byte storage used by the thumbnail cache.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class ByteStoreInterface(ABC):
    """
    Abstract interface for path-keyed byte storage.

    Writes must be atomic: a reader either sees no file or the complete
    payload, never a partially written one.
    """

    @property
    @abstractmethod
    def root(self) -> Path:
        """Root directory under which all paths live."""
        pass

    @abstractmethod
    async def write(self, path: Path, data: bytes) -> Path:
        """
        Atomically store ``data`` at ``path``.

        Raises
        ------
        StorageError
            If the payload could not be durably written.
        """
        pass

    @abstractmethod
    async def read(self, path: Path) -> bytes:
        """Return the bytes stored at ``path``."""
        pass

    @abstractmethod
    async def delete(self, path: Path) -> bool:
        """
        Delete ``path``.

        Returns
        -------
        bool
            ``True`` if a file was removed, ``False`` if it did not exist.
        """
        pass

    @abstractmethod
    async def exists(self, path: Path) -> bool:
        """Check whether a file exists at ``path``."""
        pass

    @abstractmethod
    async def list_files(self, directory: Path | None = None) -> list[Path]:
        """List stored files below ``directory`` (defaults to the root)."""
        pass

    @abstractmethod
    async def aggregate(self) -> tuple[int, int]:
        """
        Aggregate the store's contents.

        Returns
        -------
        tuple[int, int]
            ``(file_count, total_bytes)`` for all stored files.
        """
        pass

    async def cleanup_temp_files(self, older_than: float = 3600.0) -> int:
        """
        Remove leftovers of interrupted writes.

        Stores without temporary files have nothing to clean up.

        Returns
        -------
        int
            Number of temporary files removed.
        """
        return 0
