"""Review Service.

Reviews, reactions and admin moderation (hide/unhide).

Every mutation recomputes the stall's rating aggregate inside the same
transaction (see ``rating_service``), then drops the stall's cached payload
once the transaction has committed.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import (
    AdminAction,
    EntityType,
    ErrorMessages,
    ModerationAction,
    ReactionType,
    ReviewRules,
)
from ..core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StateTransitionError,
    ValidationError,
)
from ..core.logging import get_logger
from ..core.metrics import (
    review_moderations_total,
    review_reactions_total,
    reviews_submitted_total,
)
from ..domain.transformers import review_to_dict
from ..models import Review, ReviewModeration, ReviewReaction, User
from ..repositories import ReportRepository, ReviewRepository, StallRepository
from ..utils import sanitize_string
from ..utils.transaction_helpers import safe_transaction
from .admin_log_service import AdminLogService
from .cache_service import cache
from .rating_service import recompute_stall_rating

logger = get_logger(__name__)


class ReviewService:
    """Service for review reads, writes, reactions and moderation."""

    def __init__(self, db: AsyncSession, repository: ReviewRepository | None = None):
        self.db = db
        self.repository = repository or ReviewRepository(db)
        self.stalls = StallRepository(db)

    async def _get_review(self, review_id: int) -> Review:
        review = await self.repository.find_by_id(review_id)
        if not review:
            raise NotFoundError(ErrorMessages.REVIEW_NOT_FOUND)
        return review

    async def _detail(self, review_id: int) -> dict:
        row = await self.repository.find_detail(review_id)
        if row is None:
            raise NotFoundError(ErrorMessages.REVIEW_NOT_FOUND)
        return review_to_dict(*row)

    def _validate_rating(self, rating: int) -> None:
        if not ReviewRules.MIN_RATING <= rating <= ReviewRules.MAX_RATING:
            raise ValidationError(
                f"Rating must be between {ReviewRules.MIN_RATING} and {ReviewRules.MAX_RATING}",
                errors={"rating": ["Rating out of range"]}
            )

    async def list_reviews(
        self,
        stall_id: int | None = None,
        user_id: int | None = None,
        page: int = 1,
        page_size: int = 10
    ) -> tuple[list[dict], int]:
        """Visible reviews, newest first."""
        rows, total = await self.repository.list(
            stall_id=stall_id, user_id=user_id, page=page, page_size=page_size
        )
        return [review_to_dict(*row) for row in rows], total

    async def list_stall_reviews(self, stall_id: int, page: int = 1, page_size: int = 10) -> tuple[list[dict], int]:
        stall = await self.stalls.find_by_id(stall_id, active_only=True, with_relations=False)
        if not stall:
            raise NotFoundError(ErrorMessages.STALL_NOT_FOUND)
        return await self.list_reviews(stall_id=stall_id, page=page, page_size=page_size)

    async def get_recent(self, limit: int = ReviewRules.RECENT_LIMIT) -> list[dict]:
        rows = await self.repository.recent(limit)
        return [review_to_dict(*row) for row in rows]

    async def get_review(self, review_id: int, viewer: User | None = None) -> dict:
        """Formatted review. Hidden reviews are visible to their author and admins only."""
        review = await self._detail(review_id)
        if review["is_hidden"]:
            allowed = viewer is not None and (viewer.is_admin or viewer.id == review["user_id"])
            if not allowed:
                raise NotFoundError(ErrorMessages.REVIEW_NOT_FOUND)
        return review

    async def create_review(
        self,
        user: User,
        stall_id: int,
        rating: int,
        comment: str,
        title: str | None = None,
        is_anonymous: bool = False
    ) -> dict:
        """Submit a review (one per user per stall, active stalls only).

        Raises:
            NotFoundError: Stall missing or inactive
            ConflictError: User already reviewed this stall
        """
        self._validate_rating(rating)

        stall = await self.stalls.find_by_id(stall_id, active_only=True, with_relations=False)
        if not stall:
            raise NotFoundError(ErrorMessages.STALL_NOT_FOUND)

        if await self.repository.find_by_user_and_stall(user.id, stall_id):
            raise ConflictError(ErrorMessages.ALREADY_REVIEWED)

        try:
            async with safe_transaction(self.db):
                review = await self.repository.create(
                    Review(
                        stall_id=stall_id,
                        user_id=user.id,
                        rating=rating,
                        title=sanitize_string(title) or None,
                        comment=sanitize_string(comment),
                        is_anonymous=is_anonymous,
                        is_hidden=False
                    )
                )
                await recompute_stall_rating(self.db, stall_id)
        except IntegrityError:
            raise ConflictError(ErrorMessages.ALREADY_REVIEWED)

        await cache.invalidate_stall(stall_id)
        reviews_submitted_total.labels(rating=str(rating)).inc()
        logger.info(
            "Review created",
            extra={'review_id': review.id, 'stall_id': stall_id, 'user_id': user.id, 'rating': rating}
        )

        return await self._detail(review.id)

    async def update_review(self, user: User, review_id: int, changes: dict) -> dict:
        """Edit your own review."""
        review = await self._get_review(review_id)
        if review.user_id != user.id:
            raise PermissionDeniedError("You can only edit your own reviews")

        if changes.get("rating") is not None:
            self._validate_rating(changes["rating"])

        async with safe_transaction(self.db):
            if changes.get("rating") is not None:
                review.rating = changes["rating"]
            if changes.get("comment") is not None:
                review.comment = sanitize_string(changes["comment"])
            if "title" in changes:
                review.title = sanitize_string(changes["title"]) or None
            if changes.get("is_anonymous") is not None:
                review.is_anonymous = changes["is_anonymous"]
            await recompute_stall_rating(self.db, review.stall_id)

        await cache.invalidate_stall(review.stall_id)
        logger.info("Review updated", extra={'review_id': review.id, 'user_id': user.id})

        return await self._detail(review.id)

    async def delete_review(self, user: User, review_id: int) -> None:
        """Delete a review (its author or an admin)."""
        review = await self._get_review(review_id)
        if review.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("You can only delete your own reviews")

        stall_id = review.stall_id

        async with safe_transaction(self.db):
            await self.repository.delete_reviews([review.id])
            await recompute_stall_rating(self.db, stall_id)

        await cache.invalidate_stall(stall_id)
        logger.info("Review deleted", extra={'review_id': review_id, 'user_id': user.id})

    async def react(self, user: User, review_id: int, reaction_type: str) -> dict:
        """Toggle a like/dislike.

        Same reaction again removes it; the other reaction switches it.

        Returns:
            {likes, dislikes, user_reaction}
        """
        if reaction_type not in ReactionType.ALL_TYPES:
            raise ValidationError(
                "Invalid reaction type",
                errors={"reaction_type": [f"Must be one of: {', '.join(ReactionType.ALL_TYPES)}"]}
            )

        review = await self._get_review(review_id)
        if review.user_id == user.id:
            raise PermissionDeniedError(ErrorMessages.CANNOT_REACT_OWN)

        existing = await self.repository.find_reaction(review.id, user.id)

        async with safe_transaction(self.db):
            if existing is None:
                await self.repository.add_reaction(
                    ReviewReaction(review_id=review.id, user_id=user.id, reaction_type=reaction_type)
                )
                user_reaction, action = reaction_type, "added"
            elif existing.reaction_type == reaction_type:
                await self.repository.remove_reaction(existing)
                user_reaction, action = None, "removed"
            else:
                existing.reaction_type = reaction_type
                user_reaction, action = reaction_type, "switched"

        review_reactions_total.labels(reaction_type=reaction_type, action=action).inc()

        likes, dislikes = await self.repository.reaction_counts(review.id)
        return {"likes": likes, "dislikes": dislikes, "user_reaction": user_reaction}

    async def set_hidden(
        self,
        admin: User,
        review_id: int,
        hidden: bool,
        reason: str,
        ip_address: str | None = None
    ) -> dict:
        """Hide or unhide a review, recording the moderation and the rating change."""
        review = await self._get_review(review_id)
        if review.is_hidden == hidden:
            raise StateTransitionError(
                "Review is already hidden" if hidden else "Review is not hidden"
            )

        action = ModerationAction.HIDE if hidden else ModerationAction.UNHIDE

        async with safe_transaction(self.db):
            review.is_hidden = hidden
            await ReportRepository(self.db).add_moderation(
                ReviewModeration(
                    review_id=review.id,
                    stall_id=review.stall_id,
                    moderator_id=admin.id,
                    action=action,
                    reason=reason,
                    is_hidden=hidden
                )
            )
            await recompute_stall_rating(self.db, review.stall_id)
            await AdminLogService(self.db).log_action(
                admin.id,
                EntityType.REVIEW,
                review.id,
                AdminAction.HIDE_REVIEW if hidden else AdminAction.UNHIDE_REVIEW,
                f"{'Hid' if hidden else 'Restored'} review | Reason: {reason}",
                ip_address
            )

        await cache.invalidate_stall(review.stall_id)
        review_moderations_total.labels(action=action).inc()
        logger.info(
            "Review moderated",
            extra={'review_id': review.id, 'action': action, 'admin_id': admin.id}
        )

        return await self._detail(review.id)
