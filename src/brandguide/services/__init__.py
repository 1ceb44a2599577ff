"""
Services module for brandguide.

Contains the Drive thumbnail cache and the remote provider client it
consumes.
"""

from __future__ import annotations

__all__: list[str] = []
