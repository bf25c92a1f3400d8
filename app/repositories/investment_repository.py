"""
Investment repository.

Data access layer for Investment model.
"""

from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config.business_constants import NO_ACTIVE_TIER
from app.models.enums import InvestmentStatus
from app.models.investment import Investment
from app.models.investment_plan import InvestmentPlan
from app.repositories.base import BaseRepository


def _due_condition(day: date):
    """Not yet paid for day and started no later than day."""
    next_day_start = datetime.combine(day + timedelta(days=1), time.min, tzinfo=UTC)
    return and_(
        Investment.start_date < next_day_start,
        or_(
            Investment.last_profit_date.is_(None),
            Investment.last_profit_date < day,
        ),
    )


class InvestmentRepository(BaseRepository[Investment]):
    """Investment repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize investment repository."""
        super().__init__(Investment, session)

    async def get_due_user_ids(self, day: date) -> list[int]:
        """
        Get users holding active investments not yet settled for day.

        Args:
            day: Settlement day

        Returns:
            Distinct user IDs in ascending order
        """
        stmt = (
            select(Investment.user_id)
            .where(
                Investment.status == InvestmentStatus.ACTIVE.value,
                _due_condition(day),
            )
            .distinct()
            .order_by(Investment.user_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_due_for_user(self, user_id: int, day: date) -> list[Investment]:
        """
        Get user's active investments not yet settled for day, with plans.

        Args:
            user_id: Investment owner
            day: Settlement day

        Returns:
            Investments ordered by ID
        """
        stmt = (
            select(Investment)
            .options(selectinload(Investment.plan))
            .where(
                Investment.user_id == user_id,
                Investment.status == InvestmentStatus.ACTIVE.value,
                _due_condition(day),
            )
            .order_by(Investment.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def claim_for_day(self, investment_id: int, day: date) -> bool:
        """
        Advance last_profit_date to day if not already settled.

        The conditional UPDATE is the per-day claim: a second run for the
        same day matches zero rows.

        Args:
            investment_id: Investment ID
            day: Settlement day

        Returns:
            True if this caller claimed the day
        """
        stmt = (
            update(Investment)
            .where(
                Investment.id == investment_id,
                Investment.status == InvestmentStatus.ACTIVE.value,
                _due_condition(day),
            )
            .values(last_profit_date=day)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def has_active(self, user_id: int) -> bool:
        """Check if user holds at least one active investment."""
        stmt = (
            select(Investment.id)
            .where(
                Investment.user_id == user_id,
                Investment.status == InvestmentStatus.ACTIVE.value,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def get_highest_active_tier(self, user_id: int) -> int:
        """
        Get max plan tier over user's active investments.

        Args:
            user_id: User ID

        Returns:
            Highest tier or NO_ACTIVE_TIER
        """
        stmt = (
            select(func.max(InvestmentPlan.tier))
            .join(Investment, Investment.plan_id == InvestmentPlan.id)
            .where(
                Investment.user_id == user_id,
                Investment.status == InvestmentStatus.ACTIVE.value,
            )
        )
        result = await self.session.execute(stmt)
        tier = result.scalar()
        return NO_ACTIVE_TIER if tier is None else int(tier)

    async def get_active_ids_for_user(self, user_id: int) -> list[int]:
        """Get IDs of user's active investments."""
        stmt = (
            select(Investment.id)
            .where(
                Investment.user_id == user_id,
                Investment.status == InvestmentStatus.ACTIVE.value,
            )
            .order_by(Investment.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_completed(self, investment_id: int, now: datetime) -> bool:
        """
        Flip an active investment to completed.

        Returns:
            True if the investment was active
        """
        stmt = (
            update(Investment)
            .where(
                Investment.id == investment_id,
                Investment.status == InvestmentStatus.ACTIVE.value,
            )
            .values(status=InvestmentStatus.COMPLETED.value, completed_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_first_day_investors(self, day: date) -> list[int]:
        """
        Get users whose first investment started on day.

        Args:
            day: Calendar day (UTC)

        Returns:
            User IDs in ascending order
        """
        first_start = func.min(Investment.start_date)
        day_start = datetime.combine(day, time.min, tzinfo=UTC)
        day_end = day_start + timedelta(days=1)
        stmt = (
            select(Investment.user_id)
            .group_by(Investment.user_id)
            .having(first_start >= day_start, first_start < day_end)
            .order_by(Investment.user_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_started_on(self, user_id: int, day: date) -> list[Investment]:
        """Get user's investments that started on day, with plans."""
        day_start = datetime.combine(day, time.min, tzinfo=UTC)
        day_end = day_start + timedelta(days=1)
        stmt = (
            select(Investment)
            .options(selectinload(Investment.plan))
            .where(
                Investment.user_id == user_id,
                Investment.start_date >= day_start,
                Investment.start_date < day_end,
            )
            .order_by(Investment.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def has_due(self, user_id: int, day: date) -> bool:
        """Check if user holds an active investment not yet settled for day."""
        stmt = (
            select(Investment.id)
            .where(
                Investment.user_id == user_id,
                Investment.status == InvestmentStatus.ACTIVE.value,
                _due_condition(day),
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None
