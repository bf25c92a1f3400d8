"""
Integration tests for the scheduled reward passes.

Tests cover:
- Rank re-evaluation
- Team reward open, pay and hold
- Active member milestone rewards
- Provision sharing
- Daily activation reset
"""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select

from app.models import TeamReward, TradeActivation, User
from app.models.enums import ExecutionStatus, TriggerSource
from app.services.investment_service import InvestmentService
from app.services.rewards.active_member_reward import ActiveMemberRewardService
from app.services.rewards.provision_distributor import ProvisionDistributor
from app.services.rewards.team_reward_engine import TeamRewardEngine
from app.services.runner import DistributionRunner
from factories import incomes_of, wallet_of

TODAY = date(2026, 3, 10)


async def rank_of(session, user_id):
    result = await session.execute(
        select(User.rank, User.daily_limit_view, User.rank_level_roi_depth).where(
            User.id == user_id
        )
    )
    return result.one()


async def rewards_of(session, user_id) -> list[TeamReward]:
    result = await session.execute(
        select(TeamReward)
        .where(TeamReward.user_id == user_id)
        .order_by(TeamReward.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


@pytest.fixture
def runner(session_maker) -> DistributionRunner:
    return DistributionRunner(session_maker)


class TestRankUpdate:
    """Test the rank pass."""

    @pytest.mark.asyncio
    async def test_promotes_qualified_user(self, session, runner, factory):
        """Investment and active team both gate the rank."""
        plan = await factory.plan()
        leader = await factory.user()
        await factory.invest(leader, plan, Decimal("600"))
        for _ in range(5):
            member = await factory.user(referrer=leader)
            await factory.invest(member, plan, Decimal("50"))
        await session.commit()

        summary = await runner.run("rank_update", TriggerSource.MANUAL)

        assert summary.status == ExecutionStatus.COMPLETED
        assert summary.business_date is None
        rank, daily_limit_view, depth = await rank_of(session, leader.id)
        assert rank == "PRIME"
        assert daily_limit_view == 2
        assert depth == 1

    @pytest.mark.asyncio
    async def test_inactive_referrals_do_not_count(self, session, runner, factory):
        """Direct referrals without investment are not part of the active team."""
        plan = await factory.plan()
        leader = await factory.user()
        await factory.invest(leader, plan, Decimal("600"))
        for _ in range(5):
            await factory.user(referrer=leader)
        await session.commit()

        await runner.run("rank_update", TriggerSource.MANUAL)

        rank, _, _ = await rank_of(session, leader.id)
        assert rank == "ACTIVE"

    @pytest.mark.asyncio
    async def test_unchanged_users_not_counted(self, session, runner, factory):
        """Only users whose attributes change are counted as processed."""
        await factory.user()
        await factory.user()
        await session.commit()

        summary = await runner.run("rank_update", TriggerSource.MANUAL)

        assert summary.processed_count == 0

    @pytest.mark.asyncio
    async def test_demotes_when_stake_released(self, session, runner, factory):
        """A user falling below thresholds drops back to the base rank."""
        user = await factory.user()
        user.rank = "ROYAL"
        user.daily_limit_view = 4
        await session.commit()

        summary = await runner.run("rank_update", TriggerSource.MANUAL)

        assert summary.processed_count == 1
        rank, daily_limit_view, _ = await rank_of(session, user.id)
        assert rank == "ACTIVE"
        assert daily_limit_view == 1


@pytest_asyncio.fixture
async def team(session, factory):
    """Leader with a two-level team holding $100,000 in total."""
    plan = await factory.plan()
    leader = await factory.user(username="leader")
    await factory.invest(leader, plan, Decimal("100"))
    direct = await factory.user(referrer=leader)
    await factory.invest(direct, plan, Decimal("60000"))
    second = await factory.user(referrer=direct)
    await factory.invest(second, plan, Decimal("40000"))
    # third level is outside the team deposit
    third = await factory.user(referrer=second)
    await factory.invest(third, plan, Decimal("500000"))
    await session.commit()
    return leader


class TestTeamRewards:
    """Test team reward milestones."""

    @pytest.mark.asyncio
    async def test_team_deposit_two_levels(self, session_maker, team):
        """Team deposit counts two referral levels."""
        async with session_maker() as s:
            deposit = await TeamRewardEngine(s).team_deposit(team.id)

        assert deposit == Decimal("100000")

    @pytest.mark.asyncio
    async def test_opens_pending_reward(self, session, runner, team):
        """Crossing a milestone opens a pending reward maturing later."""
        await runner.run("team_rewards", TriggerSource.MANUAL, TODAY)

        rewards = await rewards_of(session, team.id)
        assert len(rewards) == 1
        assert rewards[0].status == "pending"
        assert rewards[0].matures_on == TODAY + timedelta(days=30)
        assert await wallet_of(session, team.id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_reopen_is_noop(self, session, runner, team):
        """Evaluating again does not open a second reward."""
        await runner.run("team_rewards", TriggerSource.MANUAL, TODAY)
        await runner.run("team_rewards", TriggerSource.MANUAL, TODAY + timedelta(days=1))

        assert len(await rewards_of(session, team.id)) == 1

    @pytest.mark.asyncio
    async def test_pays_matured_reward_once(self, session, runner, team):
        """A matured reward is credited once and linked to its income."""
        await runner.run("team_rewards", TriggerSource.MANUAL, TODAY)
        payday = TODAY + timedelta(days=30)

        await runner.run("team_rewards", TriggerSource.MANUAL, payday)
        await runner.run("team_rewards", TriggerSource.MANUAL, payday)

        assert await wallet_of(session, team.id) == Decimal("15000")
        rewards = await rewards_of(session, team.id)
        assert rewards[0].status == "completed"
        incomes = await incomes_of(session, team.id, "team_reward")
        assert len(incomes) == 1
        assert rewards[0].income_id == incomes[0].id

    @pytest.mark.asyncio
    async def test_held_when_owner_not_invested(self, session, session_maker, runner, team):
        """Owner without investment at maturity keeps the reward pending."""
        await runner.run("team_rewards", TriggerSource.MANUAL, TODAY)
        reward_id = (await rewards_of(session, team.id))[0].id
        async with session_maker() as s:
            released = await InvestmentService(s).release_stake(team.id)
        assert released > 0

        async with session_maker() as s:
            paid = await TeamRewardEngine(s).pay_reward(reward_id)
            await s.commit()

        assert paid is None
        assert (await rewards_of(session, team.id))[0].status == "pending"
        assert await wallet_of(session, team.id) == Decimal("0")


class TestActiveMemberRewards:
    """Test active member milestone rewards."""

    @pytest.mark.asyncio
    async def test_first_tier_awarded_once(self, session, session_maker, factory):
        """Five directs and a team of twenty earn the first tier exactly once."""
        plan = await factory.plan()
        leader = await factory.user()
        await factory.invest(leader, plan, Decimal("100"))
        directs = [await factory.user(referrer=leader) for _ in range(5)]
        for _ in range(15):
            await factory.user(referrer=directs[0])
        await session.commit()

        async with session_maker() as s:
            service = ActiveMemberRewardService(s)
            assert await service.team_size(leader.id) == 20
            first = await service.award_next_tier(leader.id)
            await s.commit()
            second = await service.award_next_tier(leader.id)
            await s.commit()

        assert first == Decimal("90")
        assert second is None
        assert await wallet_of(session, leader.id) == Decimal("90")

    @pytest.mark.asyncio
    async def test_not_invested_leader(self, session, session_maker, factory):
        """Leaders without investment get nothing."""
        leader = await factory.user()
        for _ in range(5):
            await factory.user(referrer=leader)
        await session.commit()

        async with session_maker() as s:
            assert await ActiveMemberRewardService(s).award_next_tier(leader.id) is None


class TestProvision:
    """Test provision sharing."""

    @pytest.mark.asyncio
    async def test_share_split_with_tier_gate(self, session, session_maker, factory):
        """40% of the first-day investment splits across earlier members."""
        tier1 = await factory.plan(tier=1)
        tier2 = await factory.plan(tier=2)
        senior = await factory.user(username="senior")
        await factory.invest(senior, tier2)
        junior = await factory.user(username="junior")
        await factory.invest(junior, tier1)
        newcomer = await factory.user(username="newcomer")
        await factory.invest(
            newcomer, tier2, Decimal("1000"),
            start_date=datetime(2026, 3, 10, 9, tzinfo=UTC),
        )
        await session.commit()

        async with session_maker() as s:
            result = await ProvisionDistributor(s).distribute_for_member(newcomer.id, TODAY)
            await s.commit()

        assert result.credited_count == 1
        assert result.skipped["tier_below_source"] == 1
        assert await wallet_of(session, senior.id) == Decimal("200")
        assert await wallet_of(session, junior.id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_pass_for_day_is_idempotent(self, session, runner, factory):
        """Re-running the provision pass for a day credits nothing new."""
        plan = await factory.plan()
        senior = await factory.user()
        await factory.invest(senior, plan)
        newcomer = await factory.user()
        await factory.invest(
            newcomer, plan, Decimal("500"),
            start_date=datetime(2026, 3, 10, 9, tzinfo=UTC),
        )
        await session.commit()

        first = await runner.run("provision", TriggerSource.MANUAL, TODAY)
        second = await runner.run("provision", TriggerSource.MANUAL, TODAY)

        assert first.processed_count == 1
        assert second.processed_count == 0
        assert await wallet_of(session, senior.id) == Decimal("200")


class TestActivationReset:
    """Test the daily activation reset pass."""

    @pytest.mark.asyncio
    async def test_resets_old_flags_and_expires_records(self, session, runner, factory):
        """Yesterday's flags are cleared and records expire; today's stay."""
        stale = await factory.user()
        await factory.activate(stale, TODAY - timedelta(days=1))
        fresh = await factory.user()
        await factory.activate(fresh, TODAY)
        await session.commit()

        summary = await runner.run("activation_reset", TriggerSource.MANUAL, TODAY)

        assert summary.processed_count == 1
        flags = dict(
            (await session.execute(select(User.id, User.daily_profit_activated))).all()
        )
        assert flags[stale.id] is False
        assert flags[fresh.id] is True
        statuses = dict(
            (await session.execute(select(TradeActivation.user_id, TradeActivation.status))).all()
        )
        assert statuses[stale.id] == "expired"
        assert statuses[fresh.id] == "active"
