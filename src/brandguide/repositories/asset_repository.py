"""
Asset repository for Drive-backed brand assets.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brandguide.db.models import Asset as AssetDB
from brandguide.repositories.base import BaseSQLAlchemyRepository


class AssetRepository(BaseSQLAlchemyRepository[AssetDB]):
    """Repository for asset rows referenced by the thumbnail cache."""

    def __init__(self) -> None:
        """Initialize repository with Asset model."""
        super().__init__(AssetDB)

    async def get(self, session: AsyncSession, id: int) -> Optional[AssetDB]:
        """Get asset by primary key."""
        result = await session.execute(select(AssetDB).where(AssetDB.id == id))
        return result.scalar_one_or_none()
