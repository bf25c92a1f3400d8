"""
Level commission cascader.

Distributes a percentage of a daily profit up to ten sponsorship levels.
Each hop re-checks three gates with fresh queries:

- the ancestor has invested,
- the ancestor's highest active tier is at least the source tier,
- the ancestor has at least `level` direct referrals.

Capping is enforced by the income ledger. Each credited level is
committed on its own so a failure at one level never undoes another.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import MAX_COMMISSION_LEVELS
from app.config.commission_rates import load_level_roi_rates
from app.models.enums import IncomeType
from app.services.distribution.eligibility import EligibilityOracle
from app.services.distribution.income_ledger import (
    CreditOutcome,
    CreditResult,
    IncomeLedger,
    quantize_money,
)
from app.services.distribution.upline_walker import UplineWalker
from app.utils.db_decorators import with_rollback_on_error
from app.utils.exceptions import ConfigurationError


@dataclass
class CascadeResult:
    """Result of a commission cascade."""

    success: bool
    credited_total: Decimal = Decimal("0")
    credited_levels: list[int] = field(default_factory=list)
    skipped_levels: dict[int, str] = field(default_factory=dict)
    error_message: str | None = None

    def __bool__(self) -> bool:
        return self.success


class LevelCommissionCascader:
    """Walks the sponsorship chain and credits level ROI income."""

    def __init__(
        self,
        session: AsyncSession,
        rates: dict[int, Decimal] | None = None,
        max_levels: int = MAX_COMMISSION_LEVELS,
    ) -> None:
        """
        Initialize cascader.

        Args:
            session: Async database session
            rates: Level -> percent table (loaded from settings if None)
            max_levels: Deepest level walked
        """
        self.session = session
        self._rates = rates
        self.max_levels = max_levels
        self.oracle = EligibilityOracle(session)
        self.ledger = IncomeLedger(session)
        self.walker = UplineWalker(session)

    @staticmethod
    def calculate_commission(base_amount: Decimal, rate_percent: Decimal) -> Decimal:
        """
        Calculate commission for one level.

        Args:
            base_amount: Source daily profit
            rate_percent: Level rate in percent (25 = 25%)

        Returns:
            Commission rounded down to ledger precision
        """
        if base_amount <= 0 or rate_percent <= 0:
            return Decimal("0")
        return quantize_money(base_amount * rate_percent / Decimal("100"))

    async def cascade(
        self,
        source_user_id: int,
        base_amount: Decimal,
        source_tier: int,
        reference: str,
        *,
        business_date: date | None = None,
        cron_execution_id: int | None = None,
    ) -> CascadeResult:
        """
        Cascade level commission for one source credit.

        Args:
            source_user_id: User whose profit is being shared
            base_amount: Source daily profit
            source_tier: Tier of the plan that produced the profit
            reference: Reference of the source credit (shared by all levels)
            business_date: Settlement day
            cron_execution_id: Owning batch execution

        Returns:
            CascadeResult; falsy only on unrecoverable errors
        """
        try:
            rates = self._rates if self._rates is not None else load_level_roi_rates()
        except ConfigurationError as e:
            logger.error(
                "Level commission aborted: invalid rate table",
                extra={"source_user_id": source_user_id, "error": str(e)},
            )
            return CascadeResult(success=False, error_message=str(e))

        result = CascadeResult(success=True)
        base_amount = Decimal(str(base_amount))

        try:
            async for level, ancestor_id in self.walker.walk(
                source_user_id, self.max_levels, link="referrer"
            ):
                rate = rates.get(level)
                if rate is None:
                    break

                reason = await self._gate(ancestor_id, level, source_tier)
                if reason is not None:
                    result.skipped_levels[level] = reason
                    logger.debug(
                        "Level commission gate not met",
                        extra={
                            "source_user_id": source_user_id,
                            "ancestor_id": ancestor_id,
                            "level": level,
                            "reason": reason,
                        },
                    )
                    continue

                commission = self.calculate_commission(base_amount, rate)
                try:
                    credit = await self._credit_level(
                        ancestor_id=ancestor_id,
                        source_user_id=source_user_id,
                        level=level,
                        commission=commission,
                        rate=rate,
                        reference=reference,
                        business_date=business_date,
                        cron_execution_id=cron_execution_id,
                    )
                except SQLAlchemyError as e:
                    result.skipped_levels[level] = "error"
                    logger.error(
                        "Level commission failed, continuing with next level",
                        extra={
                            "source_user_id": source_user_id,
                            "ancestor_id": ancestor_id,
                            "level": level,
                            "error": str(e),
                        },
                    )
                    continue

                if credit.outcome == CreditOutcome.CREDITED:
                    result.credited_total += credit.amount
                    result.credited_levels.append(level)
                else:
                    result.skipped_levels[level] = credit.outcome.value

        except ConfigurationError as e:
            await self.session.rollback()
            logger.error(
                "Level commission aborted",
                extra={"source_user_id": source_user_id, "error": str(e)},
            )
            result.success = False
            result.error_message = str(e)
            return result

        logger.info(
            "Level commission cascaded",
            extra={
                "source_user_id": source_user_id,
                "reference": reference,
                "credited_total": str(result.credited_total),
                "credited_levels": result.credited_levels,
            },
        )
        return result

    async def _gate(self, ancestor_id: int, level: int, source_tier: int) -> str | None:
        """Return the name of the first failed gate, or None if eligible."""
        if not await self.oracle.has_invested(ancestor_id):
            return "not_invested"
        tier = await self.oracle.highest_active_package_tier(ancestor_id)
        if tier < source_tier:
            return "tier_below_source"
        directs = await self.oracle.direct_referral_count(ancestor_id)
        if directs < level:
            return "insufficient_direct_referrals"
        return None

    @with_rollback_on_error
    async def _credit_level(
        self,
        *,
        ancestor_id: int,
        source_user_id: int,
        level: int,
        commission: Decimal,
        rate: Decimal,
        reference: str,
        business_date: date | None,
        cron_execution_id: int | None,
    ) -> CreditResult:
        credit = await self.ledger.credit(
            user_id=ancestor_id,
            amount=commission,
            income_type=IncomeType.LEVEL_ROI_INCOME,
            reference=reference,
            user_id_from=source_user_id,
            level=level,
            business_date=business_date,
            cron_execution_id=cron_execution_id,
            extra={"rate_percent": str(rate)},
        )
        await self.session.commit()
        return credit
