"""
Exception handling utilities.

Defines categorized exception types for proper error handling
inside distribution passes.
"""

from sqlalchemy.exc import SQLAlchemyError


class DistributionError(Exception):
    """Base class for distribution engine errors."""
    pass


class ConfigurationError(DistributionError):
    """Raised when rate tables or settings are missing or malformed.

    Aborts the whole run; the execution is recorded as failed.
    """
    pass


class ReferralCycleError(ConfigurationError):
    """Raised when an upline walk revisits a user."""

    def __init__(self, user_id: int, chain: list[int]) -> None:
        self.user_id = user_id
        self.chain = chain
        super().__init__(
            f"Referral cycle detected at user {user_id}: "
            f"{' -> '.join(str(u) for u in chain)}"
        )


class DataIntegrityError(DistributionError):
    """Raised when a record references a missing user or investment."""
    pass


# Exception categories based on handling strategy

# Abort the run
MUST_ABORT = (
    ConfigurationError,
)

# Roll back the entity, record the error, continue with the next one
PER_ENTITY = (
    SQLAlchemyError,
    DataIntegrityError,
)


def must_abort(exc: Exception) -> bool:
    """
    Check if exception must abort the run.

    Args:
        exc: Exception to check

    Returns:
        True if the run cannot continue
    """
    return isinstance(exc, MUST_ABORT)


def is_per_entity(exc: Exception) -> bool:
    """
    Check if exception is isolated to a single entity.

    Args:
        exc: Exception to check

    Returns:
        True if the pass should record it and continue
    """
    return isinstance(exc, PER_ENTITY)
