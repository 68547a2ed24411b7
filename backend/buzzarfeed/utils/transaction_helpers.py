"""Transaction helpers.

Services own their transactions: every write path wraps its changes in
``safe_transaction`` so a workflow step (status flip, stall creation, admin
log row) either lands completely or not at all.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import BuzzarFeedError
from ..core.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def safe_transaction(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """Commit on success, roll back and re-raise on any exception.

    Usage:
        ```python
        async with safe_transaction(db):
            stall = await stalls.create(FoodStall(...))
            application.status = ApplicationStatus.APPROVED
            await admin_logs.log_application_approval(admin.id, application)
        ```

    A BuzzarFeedError raised inside the block is an expected outcome (a
    failed check) and is logged at warning level without a traceback.
    """
    try:
        yield db
        await db.commit()
    except Exception as e:
        await db.rollback()
        expected = isinstance(e, BuzzarFeedError)
        logger.log(
            logging.WARNING if expected else logging.ERROR,
            "Transaction rolled back",
            extra={
                'error': e.message if expected else str(e),
                'error_type': type(e).__name__
            },
            exc_info=not expected
        )
        raise


async def safe_rollback(db: AsyncSession, error: Exception, context: str = "") -> None:
    """Roll back after ``error`` without masking it.

    A failing rollback (connection already gone, session closed) is logged
    and swallowed so the caller can re-raise the original error.
    """
    try:
        await db.rollback()
    except Exception as rollback_error:
        logger.warning(
            f"Rollback failed: {context}",
            extra={
                'rollback_error': str(rollback_error),
                'original_error': str(error),
                'context': context
            }
        )
