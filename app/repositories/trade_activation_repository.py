"""
Trade activation repository.

Data access layer for TradeActivation model.
"""

from datetime import date
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import (
    TERMINAL_PROFIT_STATUSES,
    ActivationStatus,
    ProfitStatus,
)
from app.models.trade_activation import TradeActivation
from app.repositories.base import BaseRepository, dialect_insert

_TERMINAL = [s.value for s in TERMINAL_PROFIT_STATUSES]


class TradeActivationRepository(BaseRepository[TradeActivation]):
    """Trade activation repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize trade activation repository."""
        super().__init__(TradeActivation, session)

    async def get_for_user_day(
        self, user_id: int, day: date
    ) -> TradeActivation | None:
        """
        Get activation record for (user, day).

        Args:
            user_id: User ID
            day: Activation day

        Returns:
            TradeActivation or None
        """
        return await self.get_by(user_id=user_id, activation_date=day)

    async def insert_pending(self, user_id: int, day: date) -> int | None:
        """
        Insert a pending activation unless one exists for (user, day).

        Returns:
            New activation ID, or None if it already existed
        """
        stmt = (
            dialect_insert(self.session, TradeActivation)
            .values(
                user_id=user_id,
                activation_date=day,
                status=ActivationStatus.ACTIVE.value,
                profit_status=ProfitStatus.PENDING.value,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "activation_date"])
            .returning(TradeActivation.id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def apply_outcome(
        self, activation_id: int, values: dict[str, Any]
    ) -> bool:
        """
        Write outcome fields unless the record is already terminal.

        Args:
            activation_id: Activation ID
            values: Column values to set

        Returns:
            True if the row transitioned
        """
        stmt = (
            update(TradeActivation)
            .where(
                TradeActivation.id == activation_id,
                TradeActivation.profit_status.not_in(_TERMINAL),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_ids_by_profit_status(
        self, day: date, profit_status: ProfitStatus
    ) -> list[int]:
        """Get activation IDs of day in the given profit status."""
        stmt = (
            select(TradeActivation.id)
            .where(
                TradeActivation.activation_date == day,
                TradeActivation.profit_status == profit_status.value,
            )
            .order_by(TradeActivation.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_user_ids_by_profit_status(
        self, day: date, profit_status: ProfitStatus
    ) -> list[int]:
        """Get user IDs whose activation of day is in the given profit status."""
        stmt = (
            select(TradeActivation.user_id)
            .where(
                TradeActivation.activation_date == day,
                TradeActivation.profit_status == profit_status.value,
            )
            .order_by(TradeActivation.user_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def expire_before(self, day: date) -> int:
        """
        Expire active activation records older than day.

        Returns:
            Number of records expired
        """
        stmt = (
            update(TradeActivation)
            .where(
                TradeActivation.activation_date < day,
                TradeActivation.status == ActivationStatus.ACTIVE.value,
            )
            .values(status=ActivationStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
