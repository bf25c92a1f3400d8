"""
Distribution services package.

Contains the daily distribution core:
- eligibility: invest / tier / referral-count gates
- income_ledger: idempotent, capping-aware credits
- activation_tracker: TradeActivation lifecycle
- upline_walker: ancestor iteration with cycle detection
- level_commission: ten-level commission cascade
- daily_roi: daily profit settlement
- execution_ledger: CronExecution audit records
"""

from app.services.distribution.activation_tracker import TradeActivationTracker
from app.services.distribution.daily_roi import DailyRoiProcessor
from app.services.distribution.eligibility import EligibilityOracle
from app.services.distribution.execution_ledger import (
    BatchExecutionLedger,
    RunContext,
)
from app.services.distribution.income_ledger import (
    CreditOutcome,
    CreditResult,
    IncomeLedger,
)
from app.services.distribution.level_commission import (
    CascadeResult,
    LevelCommissionCascader,
)
from app.services.distribution.upline_walker import UplineWalker


__all__ = [
    "BatchExecutionLedger",
    "CascadeResult",
    "CreditOutcome",
    "CreditResult",
    "DailyRoiProcessor",
    "EligibilityOracle",
    "IncomeLedger",
    "LevelCommissionCascader",
    "RunContext",
    "TradeActivationTracker",
    "UplineWalker",
]
