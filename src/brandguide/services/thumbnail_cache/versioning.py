"""
Version tags and storage paths for cached Drive thumbnails.

A version tag is a pure function of the remote last-modified timestamp:
UTC microseconds since the Unix epoch, zero-padded to a fixed width so that
string order matches chronological order. Storage paths embed the asset id,
size and tag, which makes stale-version files recognisable on disk without
consulting bookkeeping.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import NamedTuple

from brandguide.exceptions import InvalidModifiedTimeError

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_TAG_WIDTH = 18
_EXTENSION = ".jpg"
_FILENAME_PATTERN = re.compile(
    r"^(?P<asset_id>\d+)_(?P<size>[a-z0-9-]+)_(?P<tag>\d{%d})\.jpg$" % _TAG_WIDTH
)


class ParsedThumbnailPath(NamedTuple):
    """Components recovered from a cache file name."""

    asset_id: int
    size: str
    version: str


def version_tag(modified_at: datetime) -> str:
    """Return the version tag for a remote modification timestamp.

    Naive datetimes are interpreted as UTC.

    Raises
    ------
    InvalidModifiedTimeError
        If the timestamp precedes the Unix epoch.
    """
    if modified_at.tzinfo is None:
        modified_at = modified_at.replace(tzinfo=timezone.utc)
    delta = modified_at - _EPOCH
    micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    if micros < 0:
        raise InvalidModifiedTimeError(modified_at)
    return f"{micros:0{_TAG_WIDTH}d}"


class VersionResolver:
    """Maps (asset, size, version) triples onto paths under a cache root.

    Parameters
    ----------
    root : Path
        Cache root directory. Each asset gets its own subdirectory.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    @staticmethod
    def version(modified_at: datetime) -> str:
        """Version tag for ``modified_at`` (see :func:`version_tag`)."""
        return version_tag(modified_at)

    def asset_dir(self, asset_id: int) -> Path:
        """Directory holding every cached file for ``asset_id``."""
        return self._root / str(int(asset_id))

    def path(self, asset_id: int, size: str, version: str) -> Path:
        """Storage path for one cached thumbnail."""
        asset_id = int(asset_id)
        if not _FILENAME_PATTERN.match(f"{asset_id}_{size}_{version}{_EXTENSION}"):
            raise ValueError(
                f"Cannot build cache path for asset={asset_id} size={size!r} "
                f"version={version!r}"
            )
        return self.asset_dir(asset_id) / f"{asset_id}_{size}_{version}{_EXTENSION}"

    @staticmethod
    def parse(path: Path) -> ParsedThumbnailPath | None:
        """Recover ``(asset_id, size, version)`` from a cache file path."""
        match = _FILENAME_PATTERN.match(Path(path).name)
        if match is None:
            return None
        return ParsedThumbnailPath(
            asset_id=int(match.group("asset_id")),
            size=match.group("size"),
            version=match.group("tag"),
        )
