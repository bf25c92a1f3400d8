"""
Test data factory and fresh-read helpers for integration tests.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Income, Investment, InvestmentPlan, TradeActivation, User
from app.models.enums import InvestmentStatus, ProfitStatus


class Factory:
    """Creates users, plans, investments and activations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._counter = 0

    async def user(
        self,
        referrer: User | None = None,
        placement: User | None = None,
        capping_limit: Decimal | None = None,
        username: str | None = None,
    ) -> User:
        self._counter += 1
        user = User(
            username=username or f"user{self._counter}",
            referrer_id=referrer.id if referrer else None,
            placement_id=placement.id if placement else None,
            capping_limit=capping_limit,
        )
        self.session.add(user)
        await self.session.flush()
        return user

    async def plan(
        self,
        tier: int = 1,
        daily_rate_percent: Decimal = Decimal("0.8"),
        title: str | None = None,
    ) -> InvestmentPlan:
        plan = InvestmentPlan(
            title=title or f"Tier {tier}",
            tier=tier,
            daily_rate_percent=daily_rate_percent,
            amount_from=Decimal("10"),
            amount_to=None,
            is_active=True,
        )
        self.session.add(plan)
        await self.session.flush()
        return plan

    async def invest(
        self,
        user: User,
        plan: InvestmentPlan,
        amount: Decimal = Decimal("1000"),
        start_date: datetime | None = None,
        last_profit_date: date | None = None,
    ) -> Investment:
        """Create an active investment and bump the cached counter."""
        investment = Investment(
            user_id=user.id,
            plan_id=plan.id,
            amount=amount,
            status=InvestmentStatus.ACTIVE.value,
            start_date=start_date or datetime(2026, 1, 1, 12, tzinfo=UTC),
            last_profit_date=last_profit_date,
        )
        self.session.add(investment)
        user.total_investment = Decimal(str(user.total_investment or 0)) + amount
        await self.session.flush()
        return investment

    async def activate(
        self,
        user: User,
        day: date,
        profit_status: ProfitStatus = ProfitStatus.PENDING,
    ) -> TradeActivation:
        """Create the (user, day) activation record and set the user flags."""
        activation = TradeActivation(
            user_id=user.id,
            activation_date=day,
            profit_status=profit_status.value,
        )
        user.daily_profit_activated = True
        user.last_activation_date = day
        self.session.add(activation)
        await self.session.flush()
        return activation


async def wallet_of(session: AsyncSession, user_id: int) -> Decimal:
    """Fresh read of a user's wallet."""
    result = await session.execute(select(User.wallet).where(User.id == user_id))
    return Decimal(str(result.scalar_one()))


async def capping_of(session: AsyncSession, user_id: int) -> Decimal | None:
    """Fresh read of a user's remaining capping limit."""
    result = await session.execute(select(User.capping_limit).where(User.id == user_id))
    value = result.scalar_one()
    return None if value is None else Decimal(str(value))


async def incomes_of(
    session: AsyncSession, user_id: int, income_type: str | None = None
) -> list[Income]:
    """Ledger rows received by user_id, oldest first."""
    stmt = select(Income).where(Income.user_id == user_id).order_by(Income.id)
    if income_type is not None:
        stmt = stmt.where(Income.type == income_type)
    result = await session.execute(stmt.execution_options(populate_existing=True))
    return list(result.scalars().all())


async def activation_of(
    session: AsyncSession, activation_id: int
) -> TradeActivation:
    """Fresh copy of an activation record."""
    result = await session.execute(
        select(TradeActivation)
        .where(TradeActivation.id == activation_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)
