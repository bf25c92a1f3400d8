"""
Income repository.

Data access layer for the Income ledger.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import IncomeStatus, IncomeType
from app.models.income import Income
from app.repositories.base import BaseRepository, dialect_insert


class IncomeRepository(BaseRepository[Income]):
    """Income repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize income repository."""
        super().__init__(Income, session)

    async def insert_if_absent(self, **values: Any) -> int | None:
        """
        Insert a ledger row unless its idempotency key already exists.

        Args:
            **values: Income column values (idempotency_key required)

        Returns:
            New income ID, or None on duplicate key
        """
        values.setdefault("status", IncomeStatus.CREDITED.value)
        stmt = (
            dialect_insert(self.session, Income)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["idempotency_key"])
            .returning(Income.id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_by_key(self, idempotency_key: str) -> bool:
        """Remove a claimed ledger row (credit refused after claim)."""
        stmt = delete(Income).where(Income.idempotency_key == idempotency_key)
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_by_key(self, idempotency_key: str) -> Income | None:
        """Get ledger row by idempotency key."""
        return await self.get_by(idempotency_key=idempotency_key)

    async def get_daily_profit_for_day(self, day: date) -> list[Income]:
        """
        Get daily_profit entries of a settlement day.

        Args:
            day: Settlement day

        Returns:
            Entries ordered by ID
        """
        stmt = (
            select(Income)
            .where(
                Income.type == IncomeType.DAILY_PROFIT.value,
                Income.business_date == day,
                Income.status == IncomeStatus.CREDITED.value,
            )
            .order_by(Income.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_for_user(
        self, user_id: int, income_type: IncomeType | None = None
    ) -> Decimal:
        """Sum credited amounts received by user_id."""
        stmt = select(func.coalesce(func.sum(Income.amount), 0)).where(
            Income.user_id == user_id,
            Income.status == IncomeStatus.CREDITED.value,
        )
        if income_type is not None:
            stmt = stmt.where(Income.type == income_type.value)
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

