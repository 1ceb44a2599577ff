"""
Enums for brandguide models.

Defines enumeration types used across the application for consistent
type safety and validation.
"""

from __future__ import annotations

from enum import Enum


class ThumbnailSize(str, Enum):
    """Size variants for cached Drive thumbnails."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
