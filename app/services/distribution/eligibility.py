"""
Eligibility oracle.

Pure read-side queries answering whether a user may receive a credit.
Every call hits the database; results are never cached across a run
because another pass or an external deposit flow may change them.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.investment_repository import InvestmentRepository
from app.repositories.user_repository import UserRepository


class EligibilityOracle:
    """Answers invest / tier / referral-count gates."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize eligibility oracle."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.investment_repo = InvestmentRepository(session)

    async def has_invested(self, user_id: int) -> bool:
        """
        Check if user currently holds principal.

        Primary signal is the cached total_investment counter; an active
        Investment row is accepted as fallback when the counter lags.

        Args:
            user_id: User ID

        Returns:
            True if user has invested
        """
        total = await self.user_repo.get_total_investment(user_id)
        if total is None:
            return False
        if Decimal(str(total)) > 0:
            return True

        has_active = await self.investment_repo.has_active(user_id)
        if has_active:
            logger.debug(
                "total_investment is zero but active investment exists",
                extra={"user_id": user_id},
            )
        return has_active

    async def highest_active_package_tier(self, user_id: int) -> int:
        """Max plan tier over active investments, -1 if none."""
        return await self.investment_repo.get_highest_active_tier(user_id)

    async def direct_referral_count(self, user_id: int) -> int:
        """Number of users whose referrer_id is user_id."""
        return await self.user_repo.count_direct_referrals(user_id)

    async def active_direct_referral_count(self, user_id: int) -> int:
        """Number of direct referrals with total_investment > 0."""
        return await self.user_repo.count_active_direct_referrals(user_id)
