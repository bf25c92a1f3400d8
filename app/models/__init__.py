"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.cron_execution import CronExecution
from app.models.enums import (
    TERMINAL_PROFIT_STATUSES,
    ActivationStatus,
    ExecutionStatus,
    IncomeStatus,
    IncomeType,
    InvestmentStatus,
    ProfitStatus,
    TeamRewardStatus,
    TriggerSource,
)
from app.models.income import Income, build_idempotency_key
from app.models.investment import Investment
from app.models.investment_plan import InvestmentPlan
from app.models.team_reward import TeamReward
from app.models.trade_activation import TradeActivation
from app.models.user import User

__all__ = [
    "ActivationStatus",
    "Base",
    "CronExecution",
    "ExecutionStatus",
    "Income",
    "IncomeStatus",
    "IncomeType",
    "Investment",
    "InvestmentPlan",
    "InvestmentStatus",
    "ProfitStatus",
    "TERMINAL_PROFIT_STATUSES",
    "TeamReward",
    "TeamRewardStatus",
    "TradeActivation",
    "TriggerSource",
    "User",
    "build_idempotency_key",
]
