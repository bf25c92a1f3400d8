"""
Active member reward.

Weekly one-time rewards for direct referral and team size milestones.
Tiers are checked in ascending order and at most one new tier is awarded
per user per run.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    ACTIVE_MEMBER_REWARD_TIERS,
    TEAM_SIZE_MAX_DEPTH,
)
from app.models.enums import IncomeType
from app.repositories.user_repository import UserRepository
from app.services.distribution.eligibility import EligibilityOracle
from app.services.distribution.execution_ledger import RunContext
from app.services.distribution.income_ledger import CreditOutcome, IncomeLedger


class ActiveMemberRewardService:
    """Awards active member milestones."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize active member reward service."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.oracle = EligibilityOracle(session)
        self.ledger = IncomeLedger(session)

    async def team_size(self, user_id: int, max_depth: int = TEAM_SIZE_MAX_DEPTH) -> int:
        """
        Count the user's whole downline.

        Args:
            user_id: Team leader
            max_depth: Deepest level counted

        Returns:
            Number of downline members
        """
        seen = {user_id}
        frontier = [user_id]
        size = 0
        for _ in range(max_depth):
            children = [
                uid for uid in await self.user_repo.get_referral_ids(frontier)
                if uid not in seen
            ]
            if not children:
                break
            seen.update(children)
            size += len(children)
            frontier = children
        return size

    async def process_all(self, ctx: RunContext) -> None:
        """Evaluate every invested user."""
        async for user_ids in self.user_repo.iter_ids():
            for user_id in user_ids:
                if ctx.deadline_exceeded():
                    return
                try:
                    amount = await self.award_next_tier(user_id, ctx.execution_id)
                    await self.session.commit()
                except SQLAlchemyError as e:
                    await self.session.rollback()
                    ctx.record_error("user", user_id, e)
                    logger.error(
                        "Active member reward failed",
                        extra={"user_id": user_id, "error": str(e)},
                    )
                    continue
                if amount is not None:
                    ctx.add_processed(amount)

    async def award_next_tier(
        self, user_id: int, cron_execution_id: int | None = None
    ) -> Decimal | None:
        """
        Award the lowest qualifying tier not yet received.

        Returns:
            Credited amount, or None when nothing was awarded
        """
        if not await self.oracle.has_invested(user_id):
            return None

        directs = await self.oracle.direct_referral_count(user_id)
        if directs < ACTIVE_MEMBER_REWARD_TIERS[0].direct_referrals:
            return None
        team = await self.team_size(user_id)

        for number, tier in enumerate(ACTIVE_MEMBER_REWARD_TIERS, start=1):
            if directs < tier.direct_referrals or team < tier.team_size:
                break

            credit = await self.ledger.credit(
                user_id=user_id,
                amount=tier.reward_amount,
                income_type=IncomeType.ACTIVE_MEMBER_REWARD,
                reference=f"active_member:{user_id}:tier{number}",
                level=number,
                cron_execution_id=cron_execution_id,
                extra={"direct_referrals": directs, "team_size": team},
            )
            if credit.outcome == CreditOutcome.DUPLICATE:
                continue
            if credit.outcome == CreditOutcome.CREDITED:
                logger.info(
                    "Active member reward credited",
                    extra={
                        "user_id": user_id,
                        "tier": number,
                        "amount": str(credit.amount),
                    },
                )
                return credit.amount
            return None

        return None
