"""
Team reward engine.

Opens a pending reward when a user's two-level active team deposit
crosses a milestone, and pays matured rewards exactly once.
"""

from datetime import date, timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import TEAM_REWARD_DEPTH, TEAM_REWARD_TIERS
from app.models.enums import IncomeType, TeamRewardStatus
from app.repositories.team_reward_repository import TeamRewardRepository
from app.repositories.user_repository import UserRepository
from app.services.distribution.eligibility import EligibilityOracle
from app.services.distribution.execution_ledger import RunContext
from app.services.distribution.income_ledger import CreditOutcome, IncomeLedger


class TeamRewardEngine:
    """Team deposit milestone rewards."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize team reward engine."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.reward_repo = TeamRewardRepository(session)
        self.oracle = EligibilityOracle(session)
        self.ledger = IncomeLedger(session)

    async def team_deposit(self, user_id: int, depth: int = TEAM_REWARD_DEPTH) -> Decimal:
        """
        Sum active investment of the user's team down to depth levels.

        Args:
            user_id: Team leader
            depth: Levels counted

        Returns:
            Total active team deposit
        """
        member_ids: list[int] = []
        frontier = [user_id]
        for _ in range(depth):
            frontier = await self.user_repo.get_referral_ids(frontier)
            if not frontier:
                break
            member_ids.extend(frontier)
        return await self.user_repo.sum_total_investment(member_ids, active_only=True)

    async def process(self, ctx: RunContext, today: date) -> None:
        """Open new rewards, then pay matured ones."""
        await self.open_rewards(ctx, today)
        if not ctx.deadline_exceeded():
            await self.pay_matured(ctx, today)

    async def open_rewards(self, ctx: RunContext, today: date) -> None:
        """Create pending rewards for newly crossed milestones."""
        async for user_ids in self.user_repo.iter_ids():
            for user_id in user_ids:
                if ctx.deadline_exceeded():
                    return
                try:
                    await self.open_for_user(user_id, today)
                    await self.session.commit()
                except SQLAlchemyError as e:
                    await self.session.rollback()
                    ctx.record_error("user", user_id, e)
                    logger.error(
                        "Team reward evaluation failed",
                        extra={"user_id": user_id, "error": str(e)},
                    )

    async def open_for_user(self, user_id: int, today: date) -> int:
        """
        Open rewards for every milestone the user's team has crossed.

        A cancelled reward for a milestone is re-opened; pending and
        completed ones are left as they are.

        Returns:
            Number of rewards opened
        """
        deposit = await self.team_deposit(user_id)
        opened = 0
        for tier in TEAM_REWARD_TIERS:
            if deposit < tier.team_deposit:
                break

            matures_on = today + timedelta(days=tier.time_period_days)
            existing = await self.reward_repo.get_for_user_tier(user_id, tier.team_deposit)
            if existing is None:
                await self.reward_repo.create(
                    user_id=user_id,
                    team_deposit=tier.team_deposit,
                    time_period=tier.time_period_days,
                    reward_amount=tier.reward_amount,
                    start_date=today,
                    matures_on=matures_on,
                    status=TeamRewardStatus.PENDING.value,
                )
            elif existing.status == TeamRewardStatus.CANCELLED.value:
                existing.status = TeamRewardStatus.PENDING.value
                existing.start_date = today
                existing.matures_on = matures_on
                existing.remarks = None
                await self.session.flush()
            else:
                continue

            opened += 1
            logger.info(
                "Team reward opened",
                extra={
                    "user_id": user_id,
                    "team_deposit": str(tier.team_deposit),
                    "matures_on": matures_on.isoformat(),
                },
            )
        return opened

    async def pay_matured(self, ctx: RunContext, today: date) -> None:
        """Credit matured rewards whose owner still qualifies."""
        reward_ids = await self.reward_repo.get_matured_ids(today)
        await self.session.commit()

        for reward_id in reward_ids:
            if ctx.deadline_exceeded():
                return
            try:
                amount = await self.pay_reward(reward_id, ctx.execution_id)
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                ctx.record_error("team_reward", reward_id, e)
                logger.error(
                    "Team reward payout failed",
                    extra={"reward_id": reward_id, "error": str(e)},
                )
                continue
            if amount is not None:
                ctx.add_processed(amount)

    async def pay_reward(
        self, reward_id: int, cron_execution_id: int | None = None
    ) -> Decimal | None:
        """
        Pay one matured reward.

        Returns:
            Credited amount, or None when the reward stays pending
        """
        reward = await self.reward_repo.get_by_id(reward_id)
        if reward is None or reward.status != TeamRewardStatus.PENDING.value:
            return None
        user_id = reward.user_id
        amount = reward.reward_amount

        if not await self.oracle.has_invested(user_id):
            logger.info(
                "Team reward held: owner no longer invested",
                extra={"reward_id": reward_id, "user_id": user_id},
            )
            return None

        credit = await self.ledger.credit(
            user_id=user_id,
            amount=amount,
            income_type=IncomeType.TEAM_REWARD,
            reference=f"team_reward:{reward_id}",
            cron_execution_id=cron_execution_id,
            extra={"team_deposit": str(reward.team_deposit)},
        )
        if credit.outcome == CreditOutcome.CAPPED:
            return None

        income_id = credit.income_id
        if credit.outcome == CreditOutcome.DUPLICATE:
            existing = await self.ledger.income_repo.get_by_key(credit.idempotency_key)
            income_id = existing.id if existing else None

        await self.reward_repo.mark_completed(reward_id, income_id)
        logger.info(
            "Team reward paid",
            extra={"reward_id": reward_id, "user_id": user_id, "amount": str(credit.amount)},
        )
        return credit.amount if credit.credited else None
