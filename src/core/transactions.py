"""Atomic execution of booking writes.

A write operation (create, status/trip/payment change) is a closure that
re-reads every row it needs, takes row locks where the database supports
them, mutates, and flushes. Vehicle, driver and reservation rows carry an
optimistic version counter, so a writer that lost a race sees
``StaleDataError`` at flush time. The whole closure is then rolled back and
run again from the top against fresh state; partial state is never merged.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from src.config import settings
from src.core.exceptions import ConcurrencyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_atomic(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    attempts: int | None = None,
) -> T:
    attempts = attempts or settings.max_commit_attempts
    for attempt in range(1, attempts + 1):
        try:
            result = await operation()
            await db.flush()
            return result
        except StaleDataError:
            await db.rollback()
            logger.warning(
                "Concurrent write detected (attempt %d of %d), retrying", attempt, attempts
            )
    raise ConcurrencyError()
