"""
Base repository.

Generic CRUD operations for all repositories.
"""

from collections.abc import AsyncIterator
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


def dialect_insert(session: AsyncSession, model: type[Base]):
    """
    Build an INSERT supporting ON CONFLICT for the session's dialect.

    Args:
        session: Async database session
        model: Target model

    Returns:
        Dialect-specific Insert construct
    """
    if session.get_bind().dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic CRUD operations.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class IncomeRepository(BaseRepository[Income]):
            def __init__(self, session: AsyncSession):
                super().__init__(Income, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity or None if not found
        """
        return await self.session.get(self.model, id)

    async def get_by(self, **filters: Any) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = select(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity.

        Args:
            **data: Entity data

        Returns:
            Created entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def count(self, **filters: Any) -> int:
        """
        Count entities matching filters.

        Args:
            **filters: Column filters

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(self.model)

        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """
        Check if entity exists.

        Args:
            **filters: Column filters

        Returns:
            True if exists, False otherwise
        """
        count = await self.count(**filters)
        return count > 0

    async def iter_ids(
        self, batch_size: int = 500, **filters: Any
    ) -> AsyncIterator[list[int]]:
        """
        Iterate entity IDs in keyset-paginated batches.

        Yields plain integers so callers can commit or roll back between
        batches without touching expired ORM state.

        Args:
            batch_size: IDs per batch
            **filters: Column filters

        Yields:
            Lists of IDs in ascending order
        """
        last_id = 0
        while True:
            stmt = (
                select(self.model.id)
                .filter_by(**filters)
                .where(self.model.id > last_id)
                .order_by(self.model.id)
                .limit(batch_size)
            )
            result = await self.session.execute(stmt)
            ids = list(result.scalars().all())
            if not ids:
                break
            yield ids
            last_id = ids[-1]
