"""
Package purchase service.

Entry point of the purchase flow: records the investment and pays the
purchase-time bonuses (matrix income and direct referral bonus).
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import InvestmentStatus
from app.models.investment import Investment
from app.models.investment_plan import InvestmentPlan
from app.repositories.investment_repository import InvestmentRepository
from app.repositories.user_repository import UserRepository
from app.services.rewards.matrix_engine import MatrixEngine
from app.services.rewards.referral_bonus import ReferralBonusService
from app.utils.datetime_utils import utc_now
from app.utils.db_decorators import with_auto_commit
from app.utils.exceptions import DataIntegrityError


@dataclass
class PurchaseResult:
    """Result of a package purchase."""

    investment_id: int
    matrix_total: Decimal
    referral_bonus: Decimal


class PackagePurchaseService:
    """Handles package purchases and their bonuses."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize purchase service."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.investment_repo = InvestmentRepository(session)
        self.matrix = MatrixEngine(session)
        self.referral_bonus = ReferralBonusService(session)

    @with_auto_commit
    async def purchase_package(
        self, user_id: int, plan_id: int, amount: Decimal
    ) -> PurchaseResult:
        """
        Create an investment and distribute purchase bonuses.

        Args:
            user_id: Buyer
            plan_id: Investment plan
            amount: Principal

        Returns:
            PurchaseResult

        Raises:
            ValueError: If the plan is inactive or amount is out of range
            DataIntegrityError: If user or plan does not exist
        """
        amount = Decimal(str(amount))
        plan = await self.session.get(InvestmentPlan, plan_id)
        if plan is None:
            raise DataIntegrityError(f"Investment plan {plan_id} not found")
        if not plan.is_active:
            raise ValueError(f"Investment plan {plan_id} is not active")
        if amount <= 0 or amount < plan.amount_from or (
            plan.amount_to is not None and amount > plan.amount_to
        ):
            raise ValueError(
                f"Amount {amount} outside plan range "
                f"{plan.amount_from}-{plan.amount_to}"
            )

        if not await self.user_repo.add_total_investment(user_id, amount):
            raise DataIntegrityError(f"User {user_id} not found")

        investment = await self.investment_repo.create(
            user_id=user_id,
            plan_id=plan_id,
            amount=amount,
            status=InvestmentStatus.ACTIVE.value,
            start_date=utc_now(),
        )

        if settings.capping_multiplier:
            await self.user_repo.raise_capping_limit(
                user_id, amount * Decimal(str(settings.capping_multiplier))
            )

        result = await self._distribute(user_id, amount, plan.tier, investment.id)
        logger.info(
            "Package purchased",
            extra={
                "user_id": user_id,
                "investment_id": investment.id,
                "plan_id": plan_id,
                "amount": str(amount),
            },
        )
        return result

    @with_auto_commit
    async def on_package_purchase(
        self, user_id: int, amount: Decimal, tier: int, investment_id: int
    ) -> PurchaseResult:
        """
        Pay purchase-time bonuses for an investment created elsewhere.

        Safe to call repeatedly: every credit is keyed on investment_id.

        Args:
            user_id: Buyer
            amount: Purchase amount
            tier: Purchased plan tier
            investment_id: Investment reference

        Returns:
            PurchaseResult
        """
        investment = await self.session.get(Investment, investment_id)
        if investment is None or investment.user_id != user_id:
            raise DataIntegrityError(
                f"Investment {investment_id} not found for user {user_id}"
            )
        return await self._distribute(user_id, Decimal(str(amount)), tier, investment_id)

    async def _distribute(
        self, user_id: int, amount: Decimal, tier: int, investment_id: int
    ) -> PurchaseResult:
        matrix = await self.matrix.distribute(user_id, amount, tier, investment_id)
        bonus = await self.referral_bonus.distribute(user_id, amount, investment_id)
        return PurchaseResult(
            investment_id=investment_id,
            matrix_total=matrix.total,
            referral_bonus=bonus.total,
        )
