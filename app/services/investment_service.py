"""
Investment lifecycle service.

Stake release: an investment leaves the active state together with the
cached total_investment counter, in one transaction.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.investment_repository import InvestmentRepository
from app.repositories.user_repository import UserRepository
from app.utils.datetime_utils import utc_now
from app.utils.db_decorators import with_auto_commit
from app.utils.exceptions import DataIntegrityError


class InvestmentService:
    """Investment lifecycle operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize investment service."""
        self.session = session
        self.investment_repo = InvestmentRepository(session)
        self.user_repo = UserRepository(session)

    async def _complete(self, investment_id: int) -> Decimal | None:
        investment = await self.investment_repo.get_by_id(investment_id)
        if investment is None:
            raise DataIntegrityError(f"Investment {investment_id} not found")
        user_id = investment.user_id
        amount = Decimal(str(investment.amount))

        if not await self.investment_repo.mark_completed(investment_id, utc_now()):
            return None

        if not await self.user_repo.add_total_investment(user_id, -amount):
            raise DataIntegrityError(
                f"total_investment of user {user_id} is below released stake {amount}"
            )
        return amount

    @with_auto_commit
    async def complete_investment(self, investment_id: int) -> bool:
        """
        Complete one active investment and release its stake.

        Args:
            investment_id: Investment ID

        Returns:
            True if completed, False if it was not active
        """
        released = await self._complete(investment_id)
        if released is None:
            return False
        logger.info(
            "Investment completed",
            extra={"investment_id": investment_id, "released": str(released)},
        )
        return True

    @with_auto_commit
    async def release_stake(self, user_id: int) -> Decimal:
        """
        Complete all of a user's active investments.

        Args:
            user_id: Investment owner

        Returns:
            Total principal released
        """
        total = Decimal("0")
        for investment_id in await self.investment_repo.get_active_ids_for_user(user_id):
            released = await self._complete(investment_id)
            if released is not None:
                total += released

        logger.info(
            "Stake released",
            extra={"user_id": user_id, "released": str(total)},
        )
        return total
