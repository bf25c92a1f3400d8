"""
Provision distributor.

For every member whose first investments started on day D, a share of
those investments is split equally among all members who joined earlier.
Recipients whose highest tier is below the new member's tier, or whose
remaining capping cannot absorb the share, are skipped.
"""

from datetime import date
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import IncomeType
from app.repositories.investment_repository import InvestmentRepository
from app.repositories.user_repository import UserRepository
from app.services.distribution.eligibility import EligibilityOracle
from app.services.distribution.execution_ledger import RunContext
from app.services.distribution.income_ledger import (
    CreditOutcome,
    IncomeLedger,
    quantize_money,
)
from app.services.rewards.result import RewardResult


class ProvisionDistributor:
    """Shares new members' first-day investments with earlier members."""

    def __init__(
        self, session: AsyncSession, percent: Decimal | None = None
    ) -> None:
        """Initialize provision distributor."""
        self.session = session
        self.percent = (
            Decimal(str(settings.provision_percent)) if percent is None else percent
        )
        self.user_repo = UserRepository(session)
        self.investment_repo = InvestmentRepository(session)
        self.oracle = EligibilityOracle(session)
        self.ledger = IncomeLedger(session)

    async def process_day(self, ctx: RunContext, day: date) -> None:
        """
        Distribute provision for members who first invested on day.

        Args:
            ctx: Run context
            day: Settlement day D
        """
        new_member_ids = await self.investment_repo.get_first_day_investors(day)
        await self.session.commit()

        for new_member_id in new_member_ids:
            if ctx.deadline_exceeded():
                return
            try:
                result = await self.distribute_for_member(
                    new_member_id, day, ctx.execution_id
                )
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                ctx.record_error("user", new_member_id, e)
                logger.error(
                    "Provision distribution failed",
                    extra={"user_id": new_member_id, "error": str(e)},
                )
                continue
            ctx.add_processed(result.total, count=result.credited_count)

    async def distribute_for_member(
        self, new_member_id: int, day: date, cron_execution_id: int | None = None
    ) -> RewardResult:
        """
        Split one new member's provision among earlier members.

        Returns:
            RewardResult
        """
        result = RewardResult()
        investments = await self.investment_repo.get_started_on(new_member_id, day)
        if not investments:
            return result

        base = sum((Decimal(str(i.amount)) for i in investments), Decimal("0"))
        tier = max((i.plan.tier for i in investments if i.plan is not None), default=0)
        recipients = await self.user_repo.get_ids_created_before(new_member_id)
        if not recipients:
            return result

        pool = base * self.percent / Decimal("100")
        share = quantize_money(pool / Decimal(len(recipients)))
        if share <= 0:
            return result

        for recipient_id in recipients:
            if await self.oracle.highest_active_package_tier(recipient_id) < tier:
                result.skip("tier_below_source")
                continue
            credit = await self.ledger.credit(
                user_id=recipient_id,
                amount=share,
                income_type=IncomeType.PROVISION,
                reference=f"provision:{day.isoformat()}:{recipient_id}",
                user_id_from=new_member_id,
                business_date=day,
                cron_execution_id=cron_execution_id,
                extra={"pool": str(quantize_money(pool)), "recipients": len(recipients)},
            )
            if credit.outcome == CreditOutcome.CREDITED:
                result.add(credit.amount)
            else:
                result.skip(credit.outcome.value)

        logger.info(
            "Provision distributed",
            extra={
                "user_id": new_member_id,
                "business_date": day.isoformat(),
                "share": str(share),
                "credited_count": result.credited_count,
            },
        )
        return result
