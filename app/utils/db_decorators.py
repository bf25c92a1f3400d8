"""
Database decorators for automatic error handling and rollback.

Provides decorators to automatically handle database errors and rollbacks
in async functions and service methods that use SQLAlchemy sessions.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


def _resolve_session(args: tuple, kwargs: dict) -> AsyncSession | None:
    """
    Find the session of a decorated call.

    Looks at the 'session' keyword, a positional AsyncSession, then the
    'session' attribute of the bound instance (service methods).
    """
    session = kwargs.get('session')
    if session is not None:
        return session

    if args:
        if isinstance(args[0], AsyncSession):
            return args[0]
        session = getattr(args[0], 'session', None)
        if isinstance(session, AsyncSession):
            return session

    return None


async def _rollback(session: AsyncSession, func_name: str, error: Exception) -> None:
    try:
        await session.rollback()
        logger.info(
            f"Rollback performed in {func_name} due to error: {type(error).__name__}"
        )
    except Exception as rollback_error:
        logger.error(
            f"Failed to rollback in {func_name}: {rollback_error}",
            exc_info=True
        )


def with_rollback_on_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that automatically rolls back the session on any exception.

    Usage:
        @with_rollback_on_error
        async def credit_level(self, ...):
            # Your database operations
            await self.session.commit()

    The decorator will:
    1. Execute the wrapped function
    2. If an exception occurs, automatically call session.rollback()
    3. Re-raise the exception for proper error handling

    Args:
        func: Async function to wrap

    Returns:
        Wrapped function with automatic rollback on error
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _resolve_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_rollback_on_error "
                f"but no session found. Rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            await _rollback(session, func.__name__, e)
            raise

    return wrapper


def with_auto_commit(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that commits the session on success and rolls back on error.

    Usage:
        @with_auto_commit
        async def open_activation(self, user_id: int, day: date):
            # No need to call session.commit() - it's automatic
            ...

    Args:
        func: Async function to wrap

    Returns:
        Wrapped function with automatic commit/rollback
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _resolve_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_auto_commit "
                f"but no session found. Commit/rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            result = await func(*args, **kwargs)
            await session.commit()
            logger.debug(f"Auto-commit performed in {func.__name__}")
            return result
        except Exception as e:
            await _rollback(session, func.__name__, e)
            raise

    return wrapper
