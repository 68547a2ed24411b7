"""Stall Rating Aggregate.

``food_stalls.average_rating`` and ``total_reviews`` are denormalized from the
stall's non-hidden reviews. Every review mutation (create, edit, delete, hide,
unhide, account deletion) calls ``recompute_stall_rating`` inside its own
transaction so the stall row never disagrees with its reviews.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import ReviewRules
from ..core.logging import get_logger
from ..core.metrics import stall_rating_recomputes_total
from ..repositories import ReviewRepository, StallRepository
from ..utils import round_half_up

logger = get_logger(__name__)


async def recompute_stall_rating(db: AsyncSession, stall_id: int) -> tuple[float, int]:
    """Recompute and store a stall's rating aggregate.

    Must be called inside the caller's transaction, after the review change.

    Returns:
        (average_rating, total_reviews) as stored
    """
    # The session does not autoflush; pending review edits must hit the DB first
    await db.flush()

    average, total = await ReviewRepository(db).rating_aggregate(stall_id)
    average_rating = round_half_up(average, ReviewRules.RATING_DECIMALS) if average is not None else 0.0

    await StallRepository(db).update_rating(stall_id, average_rating, total)
    stall_rating_recomputes_total.inc()

    logger.debug(
        "Stall rating recomputed",
        extra={
            'stall_id': stall_id,
            'average_rating': average_rating,
            'total_reviews': total
        }
    )
    return average_rating, total
