"""
Business logic constants for the distribution engine.

Central location for rank, reward and commission tables used by the passes.
Percent values can be overridden through settings; tables are static.
"""

from dataclasses import dataclass
from decimal import Decimal


# Maximum sponsorship depth walked by the level commission cascade
MAX_COMMISSION_LEVELS = 10

# Money precision for every computed credit
MONEY_QUANT = Decimal("0.00000001")

# Every ancestor in the placement tree is paid; no depth cap (guarded by cycle check)
MATRIX_MAX_DEPTH = 1000

# Tier returned when a user holds no active investment
NO_ACTIVE_TIER = -1


@dataclass(frozen=True)
class RankTier:
    """Rank definition evaluated by the daily rank pass."""

    name: str
    min_investment: Decimal
    min_active_team: int
    daily_limit_view: int
    trade_booster: Decimal
    level_roi_income: int


# Ordered highest first; the first matching rank wins
RANKS: tuple[RankTier, ...] = (
    RankTier("SUPREME", Decimal("20000"), 60, 5, Decimal("4.5"), 5),
    RankTier("ROYAL", Decimal("5000"), 22, 4, Decimal("4.0"), 3),
    RankTier("VETERAN", Decimal("2000"), 11, 3, Decimal("3.5"), 2),
    RankTier("PRIME", Decimal("500"), 5, 2, Decimal("3.0"), 1),
    RankTier("ACTIVE", Decimal("50"), 0, 1, Decimal("2.5"), 0),
)

# Users matching no rank fall back to the lowest one
DEFAULT_RANK = RANKS[-1]


@dataclass(frozen=True)
class TeamRewardTier:
    """Team deposit milestone paid out after a waiting period."""

    team_deposit: Decimal
    time_period_days: int
    reward_amount: Decimal


TEAM_REWARD_TIERS: tuple[TeamRewardTier, ...] = (
    TeamRewardTier(Decimal("100000"), 30, Decimal("15000")),
    TeamRewardTier(Decimal("300000"), 60, Decimal("50000")),
    TeamRewardTier(Decimal("1200000"), 90, Decimal("500000")),
)

# Team deposit counts referrals down to this level
TEAM_REWARD_DEPTH = 2


@dataclass(frozen=True)
class ActiveMemberRewardTier:
    """One-time reward for direct referral and team size milestones."""

    direct_referrals: int
    team_size: int
    reward_amount: Decimal


# Ascending order; one award per weekly run
ACTIVE_MEMBER_REWARD_TIERS: tuple[ActiveMemberRewardTier, ...] = (
    ActiveMemberRewardTier(5, 20, Decimal("90")),
    ActiveMemberRewardTier(7, 50, Decimal("150")),
    ActiveMemberRewardTier(9, 100, Decimal("250")),
    ActiveMemberRewardTier(11, 300, Decimal("400")),
    ActiveMemberRewardTier(15, 600, Decimal("500")),
    ActiveMemberRewardTier(20, 1000, Decimal("600")),
    ActiveMemberRewardTier(30, 3000, Decimal("1500")),
    ActiveMemberRewardTier(40, 6000, Decimal("3000")),
    ActiveMemberRewardTier(50, 10000, Decimal("6000")),
    ActiveMemberRewardTier(60, 30000, Decimal("12000")),
    ActiveMemberRewardTier(70, 60000, Decimal("20000")),
    ActiveMemberRewardTier(80, 100000, Decimal("30000")),
    ActiveMemberRewardTier(90, 300000, Decimal("50000")),
    ActiveMemberRewardTier(100, 600000, Decimal("110000")),
    ActiveMemberRewardTier(110, 1000000, Decimal("200000")),
)

# Downline depth walked when counting team size
TEAM_SIZE_MAX_DEPTH = 50
