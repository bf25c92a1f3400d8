"""
Trade activation tracker.

Owns the per-(user, day) TradeActivation record and its profit status
lifecycle:

    pending --> processed   (terminal)
    pending --> skipped     (terminal)
    pending --> failed      (retryable)
    failed  --> processed | skipped
"""

from datetime import date
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import ProfitStatus
from app.models.trade_activation import TradeActivation
from app.repositories.trade_activation_repository import (
    TradeActivationRepository,
)
from app.repositories.user_repository import UserRepository
from app.utils.datetime_utils import profit_recognition_time
from app.utils.db_decorators import with_auto_commit
from app.utils.exceptions import DataIntegrityError


class TradeActivationTracker:
    """Manages TradeActivation records."""

    def __init__(
        self, session: AsyncSession, recognition_hour: int | None = None
    ) -> None:
        """
        Initialize tracker.

        Args:
            session: Async database session
            recognition_hour: UTC hour stamped on profit_processed_at
        """
        self.session = session
        self.recognition_hour = (
            settings.profit_recognition_hour
            if recognition_hour is None else recognition_hour
        )
        self.activation_repo = TradeActivationRepository(session)
        self.user_repo = UserRepository(session)

    @with_auto_commit
    async def open_activation(self, user_id: int, day: date) -> TradeActivation:
        """
        Activate trading for user on day.

        Sets the user's daily flag and creates the pending record. Calling
        it twice for the same day returns the existing record.

        Args:
            user_id: User ID
            day: Activation day (UTC)

        Returns:
            The (user, day) activation record

        Raises:
            DataIntegrityError: If user does not exist
        """
        if not await self.user_repo.set_daily_activation(user_id, day):
            raise DataIntegrityError(f"User {user_id} not found")

        activation_id = await self.activation_repo.insert_pending(user_id, day)
        if activation_id is not None:
            logger.info(
                "Trade activated",
                extra={"user_id": user_id, "activation_date": day.isoformat()},
            )

        activation = await self.activation_repo.get_for_user_day(user_id, day)
        return activation

    async def get_for_user_day(
        self, user_id: int, day: date
    ) -> TradeActivation | None:
        """Get activation record for (user, day)."""
        return await self.activation_repo.get_for_user_day(user_id, day)

    async def record_outcome(
        self,
        activation_id: int,
        outcome: ProfitStatus,
        *,
        amount: Decimal = Decimal("0"),
        details: dict[str, Any] | None = None,
        cron_execution_id: int | None = None,
        error: str | None = None,
        activation_date: date | None = None,
    ) -> bool:
        """
        Record the settlement outcome of an activation.

        profit_processed_at is activation_date + 1 day at the recognition
        hour for processed and skipped outcomes, regardless of when this
        runs. Terminal records are never modified.

        Args:
            activation_id: Activation ID
            outcome: processed, skipped or failed
            amount: Total profit credited
            details: Provenance (investment IDs, rates, reason)
            cron_execution_id: Owning batch execution
            error: Failure description (failed outcome)
            activation_date: Known activation day, saves a lookup

        Returns:
            True if the transition was applied, False if refused

        Raises:
            ValueError: If outcome is pending
            DataIntegrityError: If activation does not exist
        """
        if outcome == ProfitStatus.PENDING:
            raise ValueError("pending is not a settlement outcome")

        if activation_date is None:
            result = await self.session.execute(
                select(TradeActivation.activation_date).where(
                    TradeActivation.id == activation_id
                )
            )
            activation_date = result.scalar_one_or_none()
            if activation_date is None:
                raise DataIntegrityError(f"TradeActivation {activation_id} not found")

        values: dict[str, Any] = {
            "profit_status": outcome.value,
            "profit_amount": amount,
            "profit_details": details,
            "cron_execution_id": cron_execution_id,
        }
        if outcome == ProfitStatus.FAILED:
            values["profit_error"] = error
            values["profit_processed_at"] = None
        else:
            values["profit_error"] = None
            values["profit_processed_at"] = profit_recognition_time(
                activation_date, self.recognition_hour
            )

        applied = await self.activation_repo.apply_outcome(activation_id, values)
        if not applied:
            logger.warning(
                "Activation outcome refused: record is terminal or missing",
                extra={"activation_id": activation_id, "outcome": outcome.value},
            )
        return applied

    async def pending_for_day(self, day: date) -> list[int]:
        """Get IDs of activations of day still awaiting settlement."""
        return await self.activation_repo.get_ids_by_profit_status(
            day, ProfitStatus.PENDING
        )

    async def expire_stale(self, today: date) -> int:
        """Expire active records of days before today."""
        return await self.activation_repo.expire_before(today)
