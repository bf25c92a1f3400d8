"""
Income ledger.

Single write path for every credit: claims the idempotency key, then
atomically increments the recipient's wallet while consuming capping.
Does not commit; the caller owns the transaction boundary.
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_DOWN, Decimal
from enum import StrEnum
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import MONEY_QUANT
from app.models.enums import IncomeType
from app.models.income import build_idempotency_key
from app.repositories.income_repository import IncomeRepository
from app.repositories.user_repository import UserRepository


class CreditOutcome(StrEnum):
    """Result of a ledger credit attempt."""

    CREDITED = "credited"
    DUPLICATE = "duplicate"  # key already claimed, no-op success
    CAPPED = "capped"  # remaining capping_limit below amount
    ZERO_AMOUNT = "zero_amount"


@dataclass
class CreditResult:
    """Outcome of IncomeLedger.credit."""

    outcome: CreditOutcome
    amount: Decimal
    idempotency_key: str
    income_id: int | None = None

    @property
    def credited(self) -> bool:
        """Check if money moved."""
        return self.outcome == CreditOutcome.CREDITED


def quantize_money(amount: Decimal) -> Decimal:
    """Round down to ledger precision."""
    return amount.quantize(MONEY_QUANT, rounding=ROUND_DOWN)


class IncomeLedger:
    """Idempotent, capping-aware credit writer."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize income ledger."""
        self.session = session
        self.income_repo = IncomeRepository(session)
        self.user_repo = UserRepository(session)

    async def credit(
        self,
        *,
        user_id: int,
        amount: Decimal,
        income_type: IncomeType,
        reference: str,
        user_id_from: int | None = None,
        level: int = 0,
        business_date: date | None = None,
        cron_execution_id: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> CreditResult:
        """
        Credit amount to user_id exactly once per logical credit.

        Order inside the caller's transaction:
        1. INSERT the Income row ON CONFLICT DO NOTHING (the claim).
        2. Conditional UPDATE of wallet / total_earned / capping_limit.
        3. If the UPDATE matched no row, delete the claim (capped).

        Args:
            user_id: Recipient
            amount: Amount before quantization
            income_type: Ledger entry type
            reference: Activation / investment / reward reference
            user_id_from: Source user
            level: Commission level (0 when not applicable)
            business_date: Settlement day the credit belongs to
            cron_execution_id: Owning batch execution
            extra: Provenance payload

        Returns:
            CreditResult describing what happened
        """
        amount = quantize_money(Decimal(str(amount)))
        key = build_idempotency_key(income_type.value, user_id_from, level, reference)

        if amount <= 0:
            return CreditResult(CreditOutcome.ZERO_AMOUNT, amount, key)

        income_id = await self.income_repo.insert_if_absent(
            user_id=user_id,
            user_id_from=user_id_from,
            type=income_type.value,
            amount=amount,
            level=level,
            reference=reference,
            business_date=business_date,
            idempotency_key=key,
            cron_execution_id=cron_execution_id,
            extra=extra,
        )
        if income_id is None:
            logger.debug(
                "Duplicate credit ignored",
                extra={"idempotency_key": key, "user_id": user_id},
            )
            return CreditResult(CreditOutcome.DUPLICATE, amount, key)

        credited = await self.user_repo.credit_wallet(user_id, amount)
        if not credited:
            await self.income_repo.delete_by_key(key)
            logger.info(
                "Credit skipped: capping limit reached",
                extra={
                    "user_id": user_id,
                    "amount": str(amount),
                    "income_type": income_type.value,
                    "level": level,
                },
            )
            return CreditResult(CreditOutcome.CAPPED, amount, key)

        return CreditResult(CreditOutcome.CREDITED, amount, key, income_id)
