"""
User repository.

Data access layer for User model. Balance mutations are single atomic
UPDATE statements, never read-modify-write.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_username(self, username: str) -> User | None:
        """
        Get user by username.

        Args:
            username: Username

        Returns:
            User or None
        """
        return await self.get_by(username=username)

    async def get_referrer_id(self, user_id: int) -> tuple[bool, int | None]:
        """
        Get direct sponsor of a user.

        Args:
            user_id: User ID

        Returns:
            Tuple of (user_exists, referrer_id)
        """
        stmt = select(User.referrer_id).where(User.id == user_id)
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return False, None
        return True, row.referrer_id

    async def get_placement_id(self, user_id: int) -> tuple[bool, int | None]:
        """Get placement-tree parent of a user as (user_exists, placement_id)."""
        stmt = select(User.placement_id).where(User.id == user_id)
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return False, None
        return True, row.placement_id

    async def get_total_investment(self, user_id: int) -> Decimal | None:
        """Fresh read of the cached principal counter (None if user missing)."""
        stmt = select(User.total_investment).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_capping_limit(self, user_id: int) -> Decimal | None:
        """Fresh read of the remaining payout ceiling."""
        stmt = select(User.capping_limit).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_direct_referrals(self, user_id: int) -> int:
        """
        Count users directly sponsored by user_id.

        Args:
            user_id: Sponsor ID

        Returns:
            Number of direct referrals
        """
        stmt = select(func.count(User.id)).where(User.referrer_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def count_active_direct_referrals(self, user_id: int) -> int:
        """Count direct referrals with total_investment > 0."""
        stmt = select(func.count(User.id)).where(
            User.referrer_id == user_id,
            User.total_investment > 0,
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_referral_ids(self, sponsor_ids: list[int]) -> list[int]:
        """
        Get IDs of users directly sponsored by any of sponsor_ids.

        Args:
            sponsor_ids: Sponsor IDs

        Returns:
            Referral IDs in ascending order
        """
        if not sponsor_ids:
            return []
        stmt = (
            select(User.id)
            .where(User.referrer_id.in_(sponsor_ids))
            .order_by(User.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_total_investment(
        self, user_ids: list[int], active_only: bool = True
    ) -> Decimal:
        """Sum cached total_investment over user_ids."""
        if not user_ids:
            return Decimal("0")
        stmt = select(func.coalesce(func.sum(User.total_investment), 0)).where(
            User.id.in_(user_ids)
        )
        if active_only:
            stmt = stmt.where(User.total_investment > 0)
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def get_ids_created_before(self, user_id: int) -> list[int]:
        """
        Get IDs of users who joined before user_id.

        Args:
            user_id: Reference user

        Returns:
            IDs of earlier, active members
        """
        created_at = (
            select(User.created_at).where(User.id == user_id).scalar_subquery()
        )
        stmt = (
            select(User.id)
            .where(
                User.id != user_id,
                User.is_active.is_(True),
                or_(
                    User.created_at < created_at,
                    (User.created_at == created_at) & (User.id < user_id),
                ),
            )
            .order_by(User.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def credit_wallet(self, user_id: int, amount: Decimal) -> bool:
        """
        Atomically credit wallet and consume capping.

        Increments wallet and total_earned and decrements capping_limit in
        one statement. The WHERE clause refuses the credit when the
        remaining ceiling is smaller than amount, so capping_limit can
        never go negative.

        Args:
            user_id: Recipient
            amount: Positive amount

        Returns:
            True if credited, False if user missing or capped
        """
        # R9-2: Atomic update to prevent race conditions
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                or_(
                    User.capping_limit.is_(None),
                    User.capping_limit >= amount,
                ),
            )
            .values(
                wallet=User.wallet + amount,
                total_earned=User.total_earned + amount,
                capping_limit=User.capping_limit - amount,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def add_total_investment(self, user_id: int, amount: Decimal) -> bool:
        """Atomically add (or subtract, when negative) principal."""
        stmt = (
            update(User)
            .where(User.id == user_id, User.total_investment + amount >= 0)
            .values(total_investment=User.total_investment + amount)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def raise_capping_limit(self, user_id: int, amount: Decimal) -> bool:
        """
        Raise the payout ceiling by amount.

        A NULL ceiling (unlimited) becomes a finite one starting at amount.
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(capping_limit=func.coalesce(User.capping_limit, 0) + amount)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def set_daily_activation(self, user_id: int, day: date) -> bool:
        """Set the daily activation flag for day."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(daily_profit_activated=True, last_activation_date=day)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def reset_daily_activation(self, before: date) -> int:
        """
        Clear activation flags whose last activation is before `before`.

        Returns:
            Number of users reset
        """
        stmt = (
            update(User)
            .where(
                User.daily_profit_activated.is_(True),
                or_(
                    User.last_activation_date.is_(None),
                    User.last_activation_date < before,
                ),
            )
            .values(daily_profit_activated=False)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def update_rank(
        self,
        user_id: int,
        rank: str,
        trade_booster: Decimal,
        daily_limit_view: int,
        level_roi_depth: int,
    ) -> bool:
        """Apply all rank attributes in a single UPDATE."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                rank=rank,
                trade_booster=trade_booster,
                daily_limit_view=daily_limit_view,
                rank_level_roi_depth=level_roi_depth,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
