"""
Matrix engine.

On package purchase, credits a fixed percentage of the purchase to every
ancestor in the placement tree, subject to invest, tier and capping gates.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import MATRIX_MAX_DEPTH
from app.config.settings import settings
from app.models.enums import IncomeType
from app.services.distribution.eligibility import EligibilityOracle
from app.services.distribution.income_ledger import (
    CreditOutcome,
    IncomeLedger,
    quantize_money,
)
from app.services.distribution.upline_walker import UplineWalker
from app.services.rewards.result import RewardResult


class MatrixEngine:
    """Placement-tree purchase bonus."""

    def __init__(
        self, session: AsyncSession, percent: Decimal | None = None
    ) -> None:
        """
        Initialize matrix engine.

        Args:
            session: Async database session
            percent: Bonus percent (settings.matrix_income_percent if None)
        """
        self.session = session
        self.percent = (
            Decimal(str(settings.matrix_income_percent)) if percent is None else percent
        )
        self.oracle = EligibilityOracle(session)
        self.ledger = IncomeLedger(session)
        self.walker = UplineWalker(session)

    async def distribute(
        self,
        user_id: int,
        amount: Decimal,
        tier: int,
        investment_id: int,
    ) -> RewardResult:
        """
        Credit every placement ancestor of user_id.

        Does not commit; runs inside the purchase transaction.

        Args:
            user_id: Buyer
            amount: Purchase amount
            tier: Purchased plan tier
            investment_id: New investment (reference)

        Returns:
            RewardResult with credited total
        """
        result = RewardResult()
        bonus = quantize_money(Decimal(str(amount)) * self.percent / Decimal("100"))
        if bonus <= 0:
            return result

        reference = f"investment:{investment_id}"
        async for depth, ancestor_id in self.walker.walk(
            user_id, MATRIX_MAX_DEPTH, link="placement"
        ):
            if not await self.oracle.has_invested(ancestor_id):
                result.skip("not_invested")
                continue
            if await self.oracle.highest_active_package_tier(ancestor_id) < tier:
                result.skip("tier_below_source")
                continue

            credit = await self.ledger.credit(
                user_id=ancestor_id,
                amount=bonus,
                income_type=IncomeType.MATRIX,
                reference=reference,
                user_id_from=user_id,
                level=depth,
                extra={"percent": str(self.percent), "purchase_amount": str(amount)},
            )
            if credit.outcome == CreditOutcome.CREDITED:
                result.add(credit.amount)
            else:
                result.skip(credit.outcome.value)

        logger.info(
            "Matrix income distributed",
            extra={
                "user_id": user_id,
                "investment_id": investment_id,
                "credited_count": result.credited_count,
                "total": str(result.total),
            },
        )
        return result
