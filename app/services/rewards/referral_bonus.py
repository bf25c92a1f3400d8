"""
Referral bonus.

Direct sponsor bonus paid once per purchased investment.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import IncomeType
from app.repositories.user_repository import UserRepository
from app.services.distribution.eligibility import EligibilityOracle
from app.services.distribution.income_ledger import (
    CreditOutcome,
    IncomeLedger,
    quantize_money,
)
from app.services.rewards.result import RewardResult


class ReferralBonusService:
    """Credits the direct sponsor of a buyer."""

    def __init__(
        self, session: AsyncSession, percent: Decimal | None = None
    ) -> None:
        """Initialize referral bonus service."""
        self.session = session
        self.percent = (
            Decimal(str(settings.referral_bonus_percent)) if percent is None else percent
        )
        self.user_repo = UserRepository(session)
        self.oracle = EligibilityOracle(session)
        self.ledger = IncomeLedger(session)

    async def distribute(
        self, user_id: int, amount: Decimal, investment_id: int
    ) -> RewardResult:
        """
        Credit the buyer's sponsor, if the sponsor has invested.

        Args:
            user_id: Buyer
            amount: Purchase amount
            investment_id: New investment (reference)

        Returns:
            RewardResult
        """
        result = RewardResult()
        _, sponsor_id = await self.user_repo.get_referrer_id(user_id)
        if sponsor_id is None:
            return result

        if not await self.oracle.has_invested(sponsor_id):
            result.skip("not_invested")
            return result

        bonus = quantize_money(Decimal(str(amount)) * self.percent / Decimal("100"))
        credit = await self.ledger.credit(
            user_id=sponsor_id,
            amount=bonus,
            income_type=IncomeType.REFERRAL_BONUS,
            reference=f"investment:{investment_id}",
            user_id_from=user_id,
            level=1,
            extra={"percent": str(self.percent), "purchase_amount": str(amount)},
        )
        if credit.outcome == CreditOutcome.CREDITED:
            result.add(credit.amount)
            logger.info(
                "Referral bonus credited",
                extra={
                    "sponsor_id": sponsor_id,
                    "user_id": user_id,
                    "amount": str(credit.amount),
                },
            )
        else:
            result.skip(credit.outcome.value)
        return result
