"""
Pytest fixtures for repository tests.

Provides a fresh SQLite database file per test with the full schema created.
"""

from __future__ import annotations

from pathlib import Path

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from brandguide.db.models import Base


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path: Path):
    """
    Create an async database engine for testing.

    Each test gets a fresh database file to ensure test isolation.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'repositories.db'}",
        echo=False,
        future=True,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker[AsyncSession]):
    """
    Provide an async database session for testing.

    Rolls back any pending transaction on teardown.
    """
    async with session_factory() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()
