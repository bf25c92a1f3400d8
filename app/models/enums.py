"""
Enumerations shared by the distribution models.
"""

from enum import StrEnum


class InvestmentStatus(StrEnum):
    """Investment lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ActivationStatus(StrEnum):
    """Trade activation record status."""

    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class ProfitStatus(StrEnum):
    """Profit settlement status of a trade activation."""

    PENDING = "pending"
    PROCESSED = "processed"  # terminal
    FAILED = "failed"  # retryable
    SKIPPED = "skipped"  # terminal


TERMINAL_PROFIT_STATUSES = frozenset({ProfitStatus.PROCESSED, ProfitStatus.SKIPPED})


class IncomeType(StrEnum):
    """Ledger entry type."""

    DAILY_PROFIT = "daily_profit"
    LEVEL_ROI_INCOME = "level_roi_income"
    REFERRAL_BONUS = "referral_bonus"
    MATRIX = "matrix"
    TEAM_REWARD = "team_reward"
    PROVISION = "provision"
    ACTIVE_MEMBER_REWARD = "active_member_reward"


class IncomeStatus(StrEnum):
    """Ledger entry status."""

    PENDING = "pending"
    CREDITED = "credited"
    CANCELLED = "cancelled"


class ExecutionStatus(StrEnum):
    """Batch execution status."""

    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"


class TriggerSource(StrEnum):
    """Who started a batch execution."""

    AUTOMATIC = "automatic"
    MANUAL = "manual"
    BACKUP = "backup"
    RECOVERY = "recovery"


class TeamRewardStatus(StrEnum):
    """Team reward lifecycle status."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
