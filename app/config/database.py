"""
Database configuration.

Async engine and session factory shared by the scheduler process,
the manual trigger endpoint and the CLI scripts.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config.settings import settings


def create_engine(database_url: str | None = None, **kwargs) -> AsyncEngine:
    """
    Create async engine.

    Args:
        database_url: Override for settings.database_url
        **kwargs: Extra engine options (e.g. poolclass)

    Returns:
        AsyncEngine instance
    """
    options = {"echo": settings.database_echo, "pool_pre_ping": True}
    options.update(kwargs)
    return create_async_engine(database_url or settings.database_url, **options)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build session factory with the project-wide session options."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)
