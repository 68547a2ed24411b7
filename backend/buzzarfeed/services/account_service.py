"""Account Deletion Cascade.

Removing a user touches almost every table. The cascade is shared by closure
approval and the admin user deletion endpoint, and always runs inside the
caller's ``safe_transaction`` so a failure leaves the account untouched.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..core.metrics import accounts_deleted_total
from ..models import Review
from ..repositories import (
    AmendmentRepository,
    ApplicationRepository,
    ClosureRepository,
    ReportRepository,
    ReviewRepository,
    StallRepository,
    UserRepository,
)
from .rating_service import recompute_stall_rating

logger = get_logger(__name__)


class AccountDeletionService:
    """Deletes a user and everything that belongs to them."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserRepository(db)
        self.stalls = StallRepository(db)
        self.reviews = ReviewRepository(db)
        self.reports = ReportRepository(db)
        self.applications = ApplicationRepository(db)
        self.amendments = AmendmentRepository(db)
        self.closures = ClosureRepository(db)

    async def delete_account(self, user_id: int, source: str) -> list[int]:
        """Run the deletion cascade for one user.

        Order:
            1. reactions and reports the user made
            2. the user's reviews (with reactions/reports on them), then the
               rating recompute for every stall they had reviewed
            3. applications and amendment requests
            4. remaining owned stalls with their reviews, menu and location
            5. password reset tokens
            6. the user row (closure requests keep their snapshot)

        Args:
            user_id: Account to delete
            source: Metric label for what triggered the deletion ("closure", "admin")

        Returns:
            IDs of stalls whose cached data is now stale
        """
        await self.reviews.delete_reactions_by_user(user_id)
        await self.reports.delete_by_reporter(user_id)

        reviewed_stall_ids = await self.reviews.stall_ids_for_user(user_id)
        await self.reviews.delete_reviews(
            select(Review.id).where(Review.user_id == user_id)
        )

        owned_stall_ids = await self.stalls.ids_by_owner(user_id)
        for stall_id in reviewed_stall_ids:
            if stall_id not in owned_stall_ids:
                await recompute_stall_rating(self.db, stall_id)

        await self.applications.delete_by_user(user_id)
        await self.amendments.delete_by_user(user_id)
        await self.stalls.delete_stalls(owned_stall_ids)
        await self.users.delete_reset_tokens_for_user(user_id)
        await self.closures.detach_user(user_id)
        await self.users.delete(user_id)

        accounts_deleted_total.labels(source=source).inc()
        logger.info(
            "Account deleted",
            extra={
                'user_id': user_id,
                'source': source,
                'reviewed_stalls': len(reviewed_stall_ids),
                'owned_stalls': len(owned_stall_ids)
            }
        )

        return sorted(set(reviewed_stall_ids) | set(owned_stall_ids))
