"""
Team reward repository.

Data access layer for TeamReward model.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TeamRewardStatus
from app.models.team_reward import TeamReward
from app.repositories.base import BaseRepository


class TeamRewardRepository(BaseRepository[TeamReward]):
    """Team reward repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize team reward repository."""
        super().__init__(TeamReward, session)

    async def get_for_user_tier(
        self, user_id: int, team_deposit: Decimal
    ) -> TeamReward | None:
        """Get reward row for (user, milestone)."""
        return await self.get_by(user_id=user_id, team_deposit=team_deposit)

    async def get_matured_ids(self, today: date) -> list[int]:
        """
        Get pending rewards whose waiting period has elapsed.

        Args:
            today: Current UTC date

        Returns:
            Reward IDs in ascending order
        """
        stmt = (
            select(TeamReward.id)
            .where(
                TeamReward.status == TeamRewardStatus.PENDING.value,
                TeamReward.matures_on <= today,
            )
            .order_by(TeamReward.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_completed(self, reward_id: int, income_id: int | None) -> bool:
        """
        Flip a pending reward to completed.

        Returns:
            True if the reward was pending
        """
        stmt = (
            update(TeamReward)
            .where(
                TeamReward.id == reward_id,
                TeamReward.status == TeamRewardStatus.PENDING.value,
            )
            .values(status=TeamRewardStatus.COMPLETED.value, income_id=income_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
