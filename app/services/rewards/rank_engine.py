"""
Rank engine.

Daily re-evaluation of each user's rank from total investment and active
direct team size. Rank attributes are written in one UPDATE and only
when something changed.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import DEFAULT_RANK, RANKS, RankTier
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.services.distribution.eligibility import EligibilityOracle
from app.services.distribution.execution_ledger import RunContext


def evaluate_rank(total_investment: Decimal, active_team: int) -> RankTier:
    """
    Pick the highest rank whose thresholds are met.

    Args:
        total_investment: User's active principal
        active_team: Direct referrals with investment

    Returns:
        Matching rank, or the lowest rank when none matches
    """
    for rank in RANKS:
        if total_investment >= rank.min_investment and active_team >= rank.min_active_team:
            return rank
    return DEFAULT_RANK


class RankEngine:
    """Daily rank pass."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize rank engine."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.oracle = EligibilityOracle(session)

    async def process_all(self, ctx: RunContext) -> None:
        """
        Re-evaluate every user.

        Args:
            ctx: Run context
        """
        async for user_ids in self.user_repo.iter_ids():
            for user_id in user_ids:
                if ctx.deadline_exceeded():
                    return
                try:
                    changed = await self.update_user(user_id)
                    await self.session.commit()
                except SQLAlchemyError as e:
                    await self.session.rollback()
                    ctx.record_error("user", user_id, e)
                    logger.error(
                        "Rank update failed",
                        extra={"user_id": user_id, "error": str(e)},
                    )
                    continue
                if changed:
                    ctx.add_processed()

    async def update_user(self, user_id: int) -> bool:
        """
        Re-evaluate one user's rank.

        Returns:
            True if rank attributes changed
        """
        result = await self.session.execute(
            select(
                User.total_investment,
                User.rank,
                User.trade_booster,
                User.daily_limit_view,
                User.rank_level_roi_depth,
            ).where(User.id == user_id)
        )
        row = result.first()
        if row is None:
            return False

        active_team = await self.oracle.active_direct_referral_count(user_id)
        rank = evaluate_rank(Decimal(str(row.total_investment)), active_team)

        unchanged = (
            row.rank == rank.name
            and Decimal(str(row.trade_booster)) == rank.trade_booster
            and row.daily_limit_view == rank.daily_limit_view
            and row.rank_level_roi_depth == rank.level_roi_income
        )
        if unchanged:
            return False

        await self.user_repo.update_rank(
            user_id,
            rank=rank.name,
            trade_booster=rank.trade_booster,
            daily_limit_view=rank.daily_limit_view,
            level_roi_depth=rank.level_roi_income,
        )
        logger.info(
            "Rank changed",
            extra={"user_id": user_id, "old_rank": row.rank, "new_rank": rank.name},
        )
        return True
