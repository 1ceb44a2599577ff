"""
Database models for brandguide.

Only the part of the asset schema used by the Drive thumbnail cache is
modelled here.
"""

from __future__ import annotations

import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Asset(Base):
    """Brand asset, optionally backed by a Google Drive file."""

    __tablename__ = "assets"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Asset metadata
    client_id: Mapped[Optional[int]] = mapped_column(Integer)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[Optional[str]] = mapped_column(String(100))

    # Google Drive linkage
    is_google_drive: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    drive_file_id: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    drive_last_modified: Mapped[Optional[datetime.datetime]] = mapped_column(
        DateTime(timezone=True)
    )
    drive_thumbnail_url: Mapped[Optional[str]] = mapped_column(String(1000))

    # Thumbnail cache summary (mirrors the latest committed cache entry)
    cached_thumbnail_path: Mapped[Optional[str]] = mapped_column(String(1000))
    thumbnail_cache_version: Mapped[Optional[str]] = mapped_column(String(64))
    thumbnail_cached_at: Mapped[Optional[datetime.datetime]] = mapped_column(
        DateTime(timezone=True)
    )

    # Timestamps
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    thumbnail_cache_entries: Mapped[list["AssetThumbnailCache"]] = relationship(
        "AssetThumbnailCache",
        back_populates="asset",
        cascade="all, delete-orphan",
    )


class AssetThumbnailCache(Base):
    """Per-size thumbnail cache bookkeeping for an asset."""

    __tablename__ = "asset_thumbnail_cache"
    __table_args__ = (
        UniqueConstraint("asset_id", "size", name="uq_asset_thumbnail_cache_size"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    asset_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False
    )
    size: Mapped[str] = mapped_column(String(20), nullable=False)
    cached_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    cache_version: Mapped[str] = mapped_column(String(64), nullable=False)
    cached_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    asset: Mapped["Asset"] = relationship(
        "Asset", back_populates="thumbnail_cache_entries"
    )
