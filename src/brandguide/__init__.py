"""
brandguide - Brand guidelines management service.

This distribution carries the remote thumbnail cache used to serve
previews of cloud-drive hosted brand assets.
"""

from __future__ import annotations

__version__ = "0.4.0"
__author__ = "brandguide"
__email__ = "noreply@brandguide.dev"
__license__ = "AGPL-3.0-or-later"

__all__ = ["__version__", "__author__", "__email__", "__license__"]
