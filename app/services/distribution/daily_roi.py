"""
Daily ROI processor.

Settles one calendar day D: credits plan yield for every due active
investment of users who activated trading on D, records the activation
outcome and cascades level commission for each credited investment.

Each user is settled in its own transaction. The commission cascade runs
only after that transaction commits, reusing the investment reference so
replays of the same day are no-ops end to end.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TERMINAL_PROFIT_STATUSES, IncomeType, ProfitStatus
from app.models.user import User
from app.repositories.investment_repository import InvestmentRepository
from app.repositories.trade_activation_repository import (
    TradeActivationRepository,
)
from app.repositories.user_repository import UserRepository
from app.services.distribution.activation_tracker import TradeActivationTracker
from app.services.distribution.execution_ledger import RunContext
from app.services.distribution.income_ledger import (
    CreditOutcome,
    IncomeLedger,
    quantize_money,
)
from app.services.distribution.level_commission import LevelCommissionCascader
from app.utils.exceptions import DataIntegrityError

DEADLINE_ERROR = "deadline exceeded before settlement"


def investment_reference(investment_id: int, day: date) -> str:
    """Reference shared by a daily profit credit and its commissions."""
    return f"investment:{investment_id}:{day.isoformat()}"


@dataclass
class CreditedInvestment:
    """Investment credited during settlement, pending cascade."""

    investment_id: int
    profit: Decimal
    tier: int
    reference: str


class DailyRoiProcessor:
    """Settles daily profit for a calendar day."""

    def __init__(
        self,
        session: AsyncSession,
        rates: dict[int, Decimal] | None = None,
    ) -> None:
        """
        Initialize processor.

        Args:
            session: Async database session
            rates: Level commission table passed to the cascader
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.investment_repo = InvestmentRepository(session)
        self.activation_repo = TradeActivationRepository(session)
        self.tracker = TradeActivationTracker(session)
        self.ledger = IncomeLedger(session)
        self.cascader = LevelCommissionCascader(session, rates=rates)

    @staticmethod
    def calculate_daily_profit(amount: Decimal, daily_rate_percent: Decimal) -> Decimal:
        """
        Calculate one day of yield.

        Args:
            amount: Investment principal
            daily_rate_percent: Plan rate in percent (0.8 = 0.8%)

        Returns:
            Daily profit rounded down to ledger precision
        """
        amount = Decimal(str(amount))
        rate = Decimal(str(daily_rate_percent))
        if amount <= 0 or rate <= 0:
            return Decimal("0")
        return quantize_money(amount * rate / Decimal("100"))

    async def process_day(self, ctx: RunContext, day: date) -> None:
        """
        Settle every due user for day, then close remaining activations.

        Args:
            ctx: Run context (counters, errors, deadline)
            day: Settlement day D
        """
        user_ids = await self.investment_repo.get_due_user_ids(day)
        await self.session.commit()

        logger.info(
            f"Daily ROI: {len(user_ids)} users with due investments",
            extra={"business_date": day.isoformat(), "execution_id": ctx.execution_id},
        )

        for index, user_id in enumerate(user_ids):
            if ctx.deadline_exceeded():
                await self._open_unreached(ctx, user_ids[index:], day)
                break
            await self.process_user(ctx, user_id, day)

        await self.close_unsettled(ctx, day)

    async def _open_unreached(
        self, ctx: RunContext, user_ids: list[int], day: date
    ) -> None:
        """Record pending activations for flag-activated users the run did not reach."""
        opened = 0
        for user_id in user_ids:
            try:
                activation_id, eligible = await self._is_activated(user_id, day)
                await self.session.commit()
            except (DataIntegrityError, SQLAlchemyError) as e:
                await self.session.rollback()
                ctx.record_error("activation", user_id, e)
                continue
            if eligible and activation_id is not None:
                opened += 1

        logger.warning(
            "Daily ROI deadline reached",
            extra={
                "business_date": day.isoformat(),
                "unreached_users": len(user_ids),
                "open_activations": opened,
            },
        )

    async def process_user(self, ctx: RunContext, user_id: int, day: date) -> None:
        """Settle one user and cascade their credited profits."""
        try:
            credited = await self._settle_user(ctx, user_id, day)
            await self.session.commit()
        except DataIntegrityError as e:
            await self.session.rollback()
            ctx.record_error("user", user_id, e)
            logger.warning(
                "Daily ROI skipped user: data integrity error",
                extra={"user_id": user_id, "error": str(e)},
            )
            return
        except SQLAlchemyError as e:
            await self.session.rollback()
            ctx.record_error("user", user_id, e)
            logger.error(
                "Daily ROI failed for user",
                extra={"user_id": user_id, "error": str(e)},
            )
            await self._record_failure(ctx, user_id, day, str(e))
            return

        if not credited:
            return

        ctx.add_processed(sum((c.profit for c in credited), Decimal("0")))

        for item in credited:
            cascade = await self.cascader.cascade(
                user_id,
                item.profit,
                item.tier,
                item.reference,
                business_date=day,
                cron_execution_id=ctx.execution_id,
            )
            if not cascade:
                ctx.record_error(
                    "cascade", item.investment_id,
                    cascade.error_message or "level commission failed",
                )

    async def _is_activated(self, user_id: int, day: date) -> tuple[int | None, bool]:
        """
        Resolve the user's activation for day.

        Returns:
            Tuple of (activation_id, eligible). The activation record wins;
            without one, the daily flag set for day is accepted and a
            pending record is created for it.
        """
        activation = await self.activation_repo.get_for_user_day(user_id, day)
        if activation is not None:
            if activation.profit_status in TERMINAL_PROFIT_STATUSES:
                return activation.id, False
            return activation.id, True

        result = await self.session.execute(
            select(User.daily_profit_activated, User.last_activation_date).where(
                User.id == user_id
            )
        )
        row = result.first()
        if row is None:
            raise DataIntegrityError(f"User {user_id} not found for due investments")
        if not (row.daily_profit_activated and row.last_activation_date == day):
            return None, False

        activation_id = await self.activation_repo.insert_pending(user_id, day)
        if activation_id is None:
            activation = await self.activation_repo.get_for_user_day(user_id, day)
            activation_id = activation.id
        return activation_id, True

    async def _settle_user(
        self, ctx: RunContext, user_id: int, day: date
    ) -> list[CreditedInvestment]:
        if not await self.user_repo.exists(id=user_id):
            raise DataIntegrityError(f"User {user_id} not found for due investments")

        activation_id, eligible = await self._is_activated(user_id, day)
        if not eligible:
            logger.debug(
                "Daily ROI: user not activated for day",
                extra={"user_id": user_id, "business_date": day.isoformat()},
            )
            return []

        investments = await self.investment_repo.get_due_for_user(user_id, day)
        credited: list[CreditedInvestment] = []
        details: list[dict] = []
        capped = False

        for investment in investments:
            if investment.plan is None:
                raise DataIntegrityError(
                    f"Investment {investment.id} references missing plan {investment.plan_id}"
                )
            profit = self.calculate_daily_profit(
                investment.amount, investment.plan.daily_rate_percent
            )
            if not await self.investment_repo.claim_for_day(investment.id, day):
                continue

            reference = investment_reference(investment.id, day)
            credit = await self.ledger.credit(
                user_id=user_id,
                amount=profit,
                income_type=IncomeType.DAILY_PROFIT,
                reference=reference,
                user_id_from=user_id,
                level=0,
                business_date=day,
                cron_execution_id=ctx.execution_id,
                extra={
                    "investment_id": investment.id,
                    "plan_id": investment.plan_id,
                    "tier": investment.plan.tier,
                    "daily_rate_percent": str(investment.plan.daily_rate_percent),
                },
            )
            details.append({
                "investment_id": investment.id,
                "plan_id": investment.plan_id,
                "plan_title": investment.plan.title,
                "amount": str(investment.amount),
                "daily_rate_percent": str(investment.plan.daily_rate_percent),
                "profit": str(credit.amount),
                "outcome": credit.outcome.value,
            })
            if credit.outcome == CreditOutcome.CREDITED:
                credited.append(CreditedInvestment(
                    investment_id=investment.id,
                    profit=credit.amount,
                    tier=investment.plan.tier,
                    reference=reference,
                ))
            elif credit.outcome == CreditOutcome.CAPPED:
                capped = True

        total = sum((c.profit for c in credited), Decimal("0"))
        if credited:
            await self.tracker.record_outcome(
                activation_id,
                ProfitStatus.PROCESSED,
                amount=total,
                details={"investments": details},
                cron_execution_id=ctx.execution_id,
                activation_date=day,
            )
        else:
            reason = "capping_exhausted" if capped else "no_due_investment"
            await self.tracker.record_outcome(
                activation_id,
                ProfitStatus.SKIPPED,
                details={"reason": reason, "investments": details},
                cron_execution_id=ctx.execution_id,
                activation_date=day,
            )

        logger.info(
            "Daily ROI settled user",
            extra={
                "user_id": user_id,
                "business_date": day.isoformat(),
                "credited_count": len(credited),
                "total_profit": str(total),
            },
        )
        return credited

    async def _record_failure(
        self, ctx: RunContext, user_id: int, day: date, error: str
    ) -> None:
        """Mark the user's activation of day as failed in a new transaction."""
        try:
            activation = await self.activation_repo.get_for_user_day(user_id, day)
            if activation is None:
                return
            await self.tracker.record_outcome(
                activation.id,
                ProfitStatus.FAILED,
                error=error[:2000],
                cron_execution_id=ctx.execution_id,
                activation_date=day,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Could not record failed activation",
                extra={"user_id": user_id, "error": str(e)},
            )

    async def close_unsettled(self, ctx: RunContext, day: date) -> None:
        """
        Close activations of day still pending (or failed) after the loop.

        Users without due investments are skipped with the reason. Users
        still holding due investments were not reached: pending records
        become failed so a recovery run picks them up.
        """
        user_ids = set(
            await self.activation_repo.get_user_ids_by_profit_status(
                day, ProfitStatus.PENDING
            )
        )
        user_ids.update(
            await self.activation_repo.get_user_ids_by_profit_status(
                day, ProfitStatus.FAILED
            )
        )
        await self.session.commit()

        for user_id in sorted(user_ids):
            try:
                await self._close_one(ctx, user_id, day)
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                ctx.record_error("activation", user_id, e)
                logger.error(
                    "Could not close activation",
                    extra={"user_id": user_id, "error": str(e)},
                )

    async def _close_one(self, ctx: RunContext, user_id: int, day: date) -> None:
        activation = await self.activation_repo.get_for_user_day(user_id, day)
        if activation is None or activation.profit_status in TERMINAL_PROFIT_STATUSES:
            return
        activation_id = activation.id
        profit_status = activation.profit_status

        if await self.investment_repo.has_due(user_id, day):
            if profit_status == ProfitStatus.PENDING.value:
                reason = DEADLINE_ERROR if ctx.deadline_hit else "not settled by run"
                await self.tracker.record_outcome(
                    activation_id,
                    ProfitStatus.FAILED,
                    error=reason,
                    cron_execution_id=ctx.execution_id,
                    activation_date=day,
                )
                ctx.record_error("activation", activation_id, reason)
            return

        has_active = await self.investment_repo.has_active(user_id)
        reason = "no_due_investment" if has_active else "no_active_investment"
        await self.tracker.record_outcome(
            activation_id,
            ProfitStatus.SKIPPED,
            details={"reason": reason},
            cron_execution_id=ctx.execution_id,
            activation_date=day,
        )
