"""
Integration tests for DistributionRunner.

Tests cover:
- Pass registry and default business days
- Execution records on abort and crash
- Level commission re-sweep
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.models import CronExecution
from app.models.enums import ExecutionStatus, IncomeType, TriggerSource
from app.services.distribution.income_ledger import IncomeLedger
from app.services.runner import DistributionRunner
from app.utils.datetime_utils import previous_settlement_day
from factories import wallet_of

DAY = date(2026, 3, 10)


@pytest.fixture
def runner(session_maker) -> DistributionRunner:
    return DistributionRunner(session_maker)


async def execution_count(session) -> int:
    return await session.scalar(select(func.count(CronExecution.id)))


class TestRegistry:
    """Test pass lookup."""

    def test_job_names(self, runner):
        """Every scheduled pass is registered."""
        assert set(runner.job_names) == {
            "daily_roi",
            "provision",
            "level_commission",
            "team_rewards",
            "rank_update",
            "activation_reset",
            "active_member_rewards",
        }
        assert runner.has_job("daily_roi")
        assert not runner.has_job("withdrawals")

    @pytest.mark.asyncio
    async def test_unknown_job_writes_nothing(self, session, runner):
        """Unknown pass raises before an execution is opened."""
        with pytest.raises(ValueError):
            await runner.run("withdrawals", TriggerSource.MANUAL)

        assert await execution_count(session) == 0

    @pytest.mark.asyncio
    async def test_settlement_day_default(self, runner):
        """Without a day, daily_roi settles the previous UTC day."""
        summary = await runner.run("daily_roi", TriggerSource.AUTOMATIC)

        assert summary.business_date == previous_settlement_day()
        assert summary.status == ExecutionStatus.COMPLETED
        assert summary.processed_count == 0


class TestExecutionRecords:
    """Test run finalization paths."""

    @pytest.mark.asyncio
    async def test_configuration_error_fails_run(self, session, runner, monkeypatch):
        """A bad rate table finalizes the execution as failed."""
        from app.config.settings import settings

        monkeypatch.setattr(settings, "level_roi_rates", "")

        summary = await runner.run("level_commission", TriggerSource.MANUAL, DAY)

        assert summary.status == ExecutionStatus.FAILED
        execution = await session.get(CronExecution, summary.execution_id)
        assert execution.status == "failed"
        assert execution.end_time is not None

    @pytest.mark.asyncio
    async def test_unexpected_error_recorded_and_raised(self, session, runner):
        """Programming errors close the execution and propagate."""

        async def broken(session, ctx, day):
            raise RuntimeError("boom")

        runner._passes["rank_update"] = broken

        with pytest.raises(RuntimeError):
            await runner.run("rank_update", TriggerSource.MANUAL)

        execution = (await session.execute(select(CronExecution))).scalar_one()
        assert execution.status == "failed"
        assert execution.error_details[-1]["error"] == "RuntimeError: boom"

    @pytest.mark.asyncio
    async def test_one_execution_per_run(self, session, runner):
        """Every run writes its own execution record."""
        await runner.run("rank_update", TriggerSource.AUTOMATIC)
        await runner.run("rank_update", TriggerSource.BACKUP)

        assert await execution_count(session) == 2
        sources = await session.scalars(
            select(CronExecution.triggered_by).order_by(CronExecution.id)
        )
        assert sources.all() == ["automatic", "backup"]


class TestLevelCommissionSweep:
    """Test the level commission re-sweep pass."""

    @pytest.mark.asyncio
    async def test_cascades_recorded_profit(self, session, runner, factory):
        """Daily profits of the day are cascaded; repeats are duplicates."""
        plan = await factory.plan()
        sponsor = await factory.user()
        await factory.invest(sponsor, plan)
        source = await factory.user(referrer=sponsor)
        await factory.invest(source, plan)
        await IncomeLedger(session).credit(
            user_id=source.id,
            amount=Decimal("8"),
            income_type=IncomeType.DAILY_PROFIT,
            reference=f"investment:77:{DAY.isoformat()}",
            user_id_from=source.id,
            business_date=DAY,
            extra={"tier": 1},
        )
        await session.commit()

        first = await runner.run("level_commission", TriggerSource.MANUAL, DAY)
        second = await runner.run("level_commission", TriggerSource.MANUAL, DAY)

        assert first.processed_count == 1
        assert first.total_amount == Decimal("2")
        assert second.processed_count == 0
        assert await wallet_of(session, sponsor.id) == Decimal("2")

    @pytest.mark.asyncio
    async def test_sweep_after_daily_roi_is_noop(self, session, runner, factory):
        """Commissions already paid by the daily pass are not paid again."""
        plan = await factory.plan()
        sponsor = await factory.user()
        await factory.invest(sponsor, plan)
        source = await factory.user(referrer=sponsor)
        await factory.invest(source, plan)
        await factory.activate(source, DAY)
        await session.commit()

        await runner.run("daily_roi", TriggerSource.AUTOMATIC, DAY)
        sweep = await runner.run("level_commission", TriggerSource.AUTOMATIC, DAY)

        assert sweep.processed_count == 0
        assert sweep.status == ExecutionStatus.COMPLETED
        assert await wallet_of(session, sponsor.id) == Decimal("2")

    @pytest.mark.asyncio
    async def test_other_days_ignored(self, session, runner, factory):
        """Only profits of the requested day are swept."""
        sponsor = await factory.user()
        plan = await factory.plan()
        await factory.invest(sponsor, plan)
        source = await factory.user(referrer=sponsor)
        await IncomeLedger(session).credit(
            user_id=source.id,
            amount=Decimal("8"),
            income_type=IncomeType.DAILY_PROFIT,
            reference="investment:78:2026-03-09",
            user_id_from=source.id,
            business_date=date(2026, 3, 9),
            extra={"tier": 1},
        )
        await session.commit()

        summary = await runner.run("level_commission", TriggerSource.MANUAL, DAY)

        assert summary.processed_count == 0
        assert await wallet_of(session, sponsor.id) == Decimal("0")
