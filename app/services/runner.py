"""
Distribution runner.

Named registry of distribution passes. The scheduler, the manual trigger
endpoint, the queue actors and the CLI scripts all call run(), so every
trigger path writes exactly one CronExecution.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.commission_rates import load_level_roi_rates
from app.models.enums import ExecutionStatus, TriggerSource
from app.repositories.income_repository import IncomeRepository
from app.repositories.user_repository import UserRepository
from app.services.distribution.activation_tracker import TradeActivationTracker
from app.services.distribution.daily_roi import DailyRoiProcessor
from app.services.distribution.execution_ledger import (
    BatchExecutionLedger,
    RunContext,
)
from app.services.distribution.level_commission import LevelCommissionCascader
from app.services.rewards.active_member_reward import ActiveMemberRewardService
from app.services.rewards.provision_distributor import ProvisionDistributor
from app.services.rewards.rank_engine import RankEngine
from app.services.rewards.team_reward_engine import TeamRewardEngine
from app.utils.datetime_utils import previous_settlement_day, utc_today
from app.utils.exceptions import ConfigurationError

PassHandler = Callable[[AsyncSession, RunContext, date | None], Awaitable[None]]

# Passes settling the previous calendar day by default
SETTLEMENT_DAY_JOBS = frozenset({"daily_roi", "provision", "level_commission"})
# Passes evaluated against the current calendar day by default
CURRENT_DAY_JOBS = frozenset({"team_rewards", "activation_reset"})


@dataclass
class RunSummary:
    """Outcome of a pass run."""

    execution_id: int
    job_name: str
    status: ExecutionStatus
    business_date: date | None
    processed_count: int = 0
    total_amount: Decimal = Decimal("0")
    error_count: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_response(self, error_limit: int) -> dict[str, Any]:
        """Serialize for the manual trigger endpoint."""
        return {
            "executionId": self.execution_id,
            "jobName": self.job_name,
            "status": self.status.value,
            "businessDate": self.business_date.isoformat() if self.business_date else None,
            "processedCount": self.processed_count,
            "totalAmount": str(self.total_amount),
            "errorCount": self.error_count,
            "errors": self.errors[:error_limit],
        }


class DistributionRunner:
    """Runs distribution passes by name."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        execution_ledger: BatchExecutionLedger | None = None,
    ) -> None:
        """
        Initialize runner.

        Args:
            session_maker: Session factory for pass work
            execution_ledger: Audit writer (built from session_maker if None)
        """
        self.session_maker = session_maker
        self.execution_ledger = execution_ledger or BatchExecutionLedger(session_maker)
        self._passes: dict[str, PassHandler] = {
            "daily_roi": self._run_daily_roi,
            "provision": self._run_provision,
            "level_commission": self._run_level_commission,
            "team_rewards": self._run_team_rewards,
            "rank_update": self._run_rank_update,
            "activation_reset": self._run_activation_reset,
            "active_member_rewards": self._run_active_member_rewards,
        }

    @property
    def job_names(self) -> list[str]:
        """Registered pass names."""
        return list(self._passes)

    def has_job(self, job_name: str) -> bool:
        """Check if a pass is registered."""
        return job_name in self._passes

    @staticmethod
    def default_day(job_name: str) -> date | None:
        """Business day a pass runs for when none is given."""
        if job_name in SETTLEMENT_DAY_JOBS:
            return previous_settlement_day()
        if job_name in CURRENT_DAY_JOBS:
            return utc_today()
        return None

    async def run(
        self,
        job_name: str,
        triggered_by: TriggerSource = TriggerSource.AUTOMATIC,
        day: date | None = None,
    ) -> RunSummary:
        """
        Run one pass and record its execution.

        Args:
            job_name: Registered pass name
            triggered_by: Trigger source recorded on the execution
            day: Business day (pass default if None)

        Returns:
            RunSummary

        Raises:
            ValueError: If job_name is not registered
        """
        handler = self._passes.get(job_name)
        if handler is None:
            raise ValueError(f"Unknown distribution pass: {job_name}")

        if day is None:
            day = self.default_day(job_name)

        ctx = await self.execution_ledger.start(job_name, triggered_by, day)
        try:
            async with self.session_maker() as session:
                await handler(session, ctx, day)
        except ConfigurationError as e:
            ctx.aborted = str(e)
            logger.error(
                f"Pass {job_name} aborted: configuration error",
                extra={"execution_id": ctx.execution_id, "error": str(e)},
            )
        except SQLAlchemyError as e:
            ctx.aborted = f"{type(e).__name__}: {e}"
            logger.exception(
                f"Pass {job_name} aborted: database error",
                extra={"execution_id": ctx.execution_id},
            )
        except Exception as e:
            ctx.aborted = f"{type(e).__name__}: {e}"
            await self.execution_ledger.finish(ctx)
            raise

        status = await self.execution_ledger.finish(ctx)
        return RunSummary(
            execution_id=ctx.execution_id,
            job_name=job_name,
            status=status,
            business_date=day,
            processed_count=ctx.processed_count,
            total_amount=ctx.total_amount,
            error_count=ctx.error_count,
            errors=list(ctx.errors),
        )

    async def retry_failed_activations(self, day: date | None = None) -> RunSummary:
        """Re-run the daily pass for day so failed activations settle."""
        return await self.run("daily_roi", TriggerSource.RECOVERY, day)

    async def _run_daily_roi(
        self, session: AsyncSession, ctx: RunContext, day: date | None
    ) -> None:
        rates = load_level_roi_rates()
        processor = DailyRoiProcessor(session, rates=rates)
        await processor.process_day(ctx, day)

    async def _run_provision(
        self, session: AsyncSession, ctx: RunContext, day: date | None
    ) -> None:
        await ProvisionDistributor(session).process_day(ctx, day)

    async def _run_level_commission(
        self, session: AsyncSession, ctx: RunContext, day: date | None
    ) -> None:
        """Re-cascade every daily profit of day; credited levels are duplicates."""
        rates = load_level_roi_rates()
        cascader = LevelCommissionCascader(session, rates=rates)

        incomes = await IncomeRepository(session).get_daily_profit_for_day(day)
        sources = [
            (
                income.id,
                income.user_id,
                Decimal(str(income.amount)),
                int((income.extra or {}).get("tier", 0)),
                income.reference,
            )
            for income in incomes
        ]
        await session.commit()

        for income_id, user_id, amount, tier, reference in sources:
            if ctx.deadline_exceeded():
                return
            result = await cascader.cascade(
                user_id,
                amount,
                tier,
                reference,
                business_date=day,
                cron_execution_id=ctx.execution_id,
            )
            if not result:
                ctx.record_error(
                    "income", income_id, result.error_message or "level commission failed"
                )
                continue
            ctx.add_processed(result.credited_total, count=len(result.credited_levels))

    async def _run_team_rewards(
        self, session: AsyncSession, ctx: RunContext, day: date | None
    ) -> None:
        await TeamRewardEngine(session).process(ctx, day)

    async def _run_rank_update(
        self, session: AsyncSession, ctx: RunContext, day: date | None
    ) -> None:
        await RankEngine(session).process_all(ctx)

    async def _run_activation_reset(
        self, session: AsyncSession, ctx: RunContext, day: date | None
    ) -> None:
        reset = await UserRepository(session).reset_daily_activation(day)
        expired = await TradeActivationTracker(session).expire_stale(day)
        await session.commit()
        ctx.add_processed(count=reset)
        logger.info(
            "Daily activation reset",
            extra={"users_reset": reset, "activations_expired": expired},
        )

    async def _run_active_member_rewards(
        self, session: AsyncSession, ctx: RunContext, day: date | None
    ) -> None:
        await ActiveMemberRewardService(session).process_all(ctx)
