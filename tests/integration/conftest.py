"""
Fixtures for integration tests.

Each test gets its own SQLite database file with the full schema, a
session factory configured like production and a small data factory.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.database import create_engine, create_session_maker
from app.models import Base
from factories import Factory


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine on a fresh SQLite file with all tables created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'engine.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """Session used for arranging and asserting."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def factory(session) -> Factory:
    """Data factory writing through the test session."""
    return Factory(session)
