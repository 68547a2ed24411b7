"""Periodic maintenance tasks."""

from sqlalchemy.exc import DatabaseError, OperationalError, TimeoutError as SQLTimeoutError

from ..core.constants import Security
from ..core.exceptions import RecoverableError
from ..core.logging import get_logger, set_request_id
from ..core.metrics import worker_tasks_total
from ..db.database import AsyncSessionLocal
from ..models.base import utcnow
from ..repositories import UserRepository

logger = get_logger(__name__)


async def cleanup_password_reset_tokens(ctx):
    """Periodic task: delete password reset tokens that are expired or used.

    Tokens are single use and short lived, so nothing here is needed once it
    can no longer redeem a reset.
    """
    set_request_id(Security.REQUEST_ID_PREFIX_CLEANUP)

    logger.info("Running password reset token cleanup task")

    async with AsyncSessionLocal() as db:
        try:
            deleted_count = await UserRepository(db).purge_reset_tokens(utcnow())
            await db.commit()
        except (OperationalError, DatabaseError, SQLTimeoutError) as e:
            await db.rollback()
            logger.warning(
                "Database error during token cleanup (will retry)",
                extra={
                    'error': str(e),
                    'error_type': type(e).__name__,
                    'retryable': True
                },
                exc_info=True
            )
            worker_tasks_total.labels(task_name='cleanup_password_reset_tokens', status='retry').inc()
            raise RecoverableError(f"Database error during cleanup: {e}") from e

    worker_tasks_total.labels(task_name='cleanup_password_reset_tokens', status='success').inc()
    logger.info(
        "Password reset token cleanup completed",
        extra={'deleted_count': deleted_count}
    )
    return f"Deleted {deleted_count} password reset tokens"
