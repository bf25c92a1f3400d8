"""
Async runner for dramatiq tasks.

Provides a thread-safe way to run async passes in dramatiq actors.
Each worker thread reuses one event loop, and each task gets its own
NullPool engine bound to that loop.
"""

import asyncio
import threading
from collections.abc import Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.config.database import create_engine, create_session_maker

T = TypeVar("T")

# Thread-local storage for event loops
_thread_local = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """
    Get or create event loop for current thread.

    Creates a new event loop for each thread and reuses it.
    This prevents "Future attached to a different loop" errors.
    """
    loop = getattr(_thread_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
        logger.debug(f"Created new event loop for thread {threading.current_thread().name}")
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in the thread's event loop.

    Args:
        coro: Async coroutine to run

    Returns:
        Result of the coroutine
    """
    loop = get_event_loop()
    try:
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.exception(f"Error running async coroutine: {e}")
        raise


@asynccontextmanager
async def local_session_maker():
    """
    Create a session factory bound to the current event loop.

    Usage:
        async with local_session_maker() as session_maker:
            runner = DistributionRunner(session_maker)

    Yields:
        async_sessionmaker backed by a NullPool engine
    """
    local_engine = create_engine(echo=False, poolclass=NullPool)
    maker: async_sessionmaker[AsyncSession] = create_session_maker(local_engine)
    try:
        yield maker
    finally:
        await local_engine.dispose()
