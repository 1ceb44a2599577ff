"""
Base repository implementation.

Provides operations shared by brandguide repositories.
"""

from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

# Type variable for generic repository
ModelType = TypeVar("ModelType", bound=DeclarativeBase)


class BaseSQLAlchemyRepository(Generic[ModelType]):
    """
    Base SQLAlchemy repository implementation.

    Holds the mapped model and provides the queries every repository
    shares. Subclasses add the lookups their callers need.
    """

    def __init__(self, model: type[ModelType]):
        self.model = model

    async def get(self, session: AsyncSession, id: Any) -> Optional[ModelType]:
        """Get entity by primary key."""
        # Subclasses own their primary key column names
        raise NotImplementedError("Subclasses must implement get() method")

    async def count(self, session: AsyncSession) -> int:
        """Count total number of entities."""
        result = await session.execute(select(func.count()).select_from(self.model))
        return result.scalar() or 0
