"""
Disk-backed byte storage for the thumbnail cache.

Writes go to a uniquely named temporary file in the destination directory
and are then renamed into place, so concurrent readers never observe a
partially written thumbnail.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path
from uuid import uuid4

from brandguide.exceptions import StorageError
from brandguide.services.interfaces import ByteStoreInterface

logger = logging.getLogger(__name__)

_TMP_MARKER = ".tmp."


def _is_temp_file(path: Path) -> bool:
    return path.name.startswith(".") and _TMP_MARKER in path.name


class DiskStore(ByteStoreInterface):
    """Durable byte storage rooted at a cache directory.

    Parameters
    ----------
    root : Path
        Directory under which every stored path must live.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def ensure_root(self) -> None:
        """Create the cache root if it does not exist."""
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(
                f"Cannot create cache directory {self._root}",
                path=self._root,
                original_error=exc,
            ) from exc

    # ------------------------------------------------------------------
    # Byte operations
    # ------------------------------------------------------------------

    async def write(self, path: Path, data: bytes) -> Path:
        path = self._check_within_root(path)
        await asyncio.to_thread(self._write_atomic, path, data)
        logger.debug("Stored %d bytes at %s", len(data), path)
        return path

    async def read(self, path: Path) -> bytes:
        path = self._check_within_root(path)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise StorageError(
                f"Cannot read cached file {path}", path=path, original_error=exc
            ) from exc

    async def delete(self, path: Path) -> bool:
        path = self._check_within_root(path)
        try:
            return await asyncio.to_thread(self._unlink, path)
        except OSError as exc:
            raise StorageError(
                f"Cannot delete cached file {path}", path=path, original_error=exc
            ) from exc

    async def exists(self, path: Path) -> bool:
        path = self._check_within_root(path)
        return await asyncio.to_thread(path.is_file)

    async def list_files(self, directory: Path | None = None) -> list[Path]:
        directory = self._check_within_root(directory or self._root)
        return await asyncio.to_thread(self._scan, directory)

    async def aggregate(self) -> tuple[int, int]:
        return await asyncio.to_thread(self._aggregate)

    async def cleanup_temp_files(self, older_than: float = 3600.0) -> int:
        """Remove temporary files abandoned by interrupted writes.

        Parameters
        ----------
        older_than : float
            Minimum age in seconds; younger temp files may belong to a write
            that is still in progress.

        Returns
        -------
        int
            Number of temporary files removed.
        """
        return await asyncio.to_thread(self._cleanup_temp_files, older_than)

    # ------------------------------------------------------------------
    # Blocking helpers (run in worker threads)
    # ------------------------------------------------------------------

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        tmp_path = path.with_name(f".{path.stem}{_TMP_MARKER}{uuid4().hex}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove temp file %s", tmp_path)
            logger.error("Disk error writing cached thumbnail to %s", path, exc_info=True)
            raise StorageError(
                f"Cannot write cached file {path}", path=path, original_error=exc
            ) from exc

    @staticmethod
    def _unlink(path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    @staticmethod
    def _scan(directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(
            path
            for path in directory.rglob("*")
            if path.is_file() and not _is_temp_file(path)
        )

    def _aggregate(self) -> tuple[int, int]:
        count = 0
        total = 0
        for path in self._scan(self._root):
            try:
                total += path.stat().st_size
            except FileNotFoundError:
                # Removed between scan and stat
                continue
            count += 1
        return count, total

    def _cleanup_temp_files(self, older_than: float) -> int:
        if not self._root.is_dir():
            return 0
        cutoff = time.time() - older_than
        removed = 0
        for path in self._root.rglob(f".*{_TMP_MARKER}*"):
            try:
                if path.is_file() and path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except OSError:
                logger.warning("Failed to remove orphaned temp file %s", path, exc_info=True)
        if removed:
            logger.info("Removed %d orphaned temp file(s) from %s", removed, self._root)
        return removed

    def _check_within_root(self, path: Path) -> Path:
        path = Path(path)
        root = self._root.resolve()
        resolved = path.resolve()
        if resolved != root and root not in resolved.parents:
            raise StorageError(f"Path {path} is outside the cache root {self._root}", path=path)
        return path
