"""
Database module for brandguide.

Contains the SQLAlchemy models backing asset thumbnail cache bookkeeping.
"""

from __future__ import annotations

from .models import Asset, AssetThumbnailCache, Base

__all__: list[str] = ["Asset", "AssetThumbnailCache", "Base"]
