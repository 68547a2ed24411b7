"""Review Repository.

Data access for reviews and reactions, including the rating aggregate that
keeps ``food_stalls.average_rating`` / ``total_reviews`` consistent.
"""

from __future__ import annotations

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import ReactionType
from ..models import FoodStall, Review, ReviewReaction, ReviewReport, User
from .base import paginate


def _reaction_count(reaction_type: str):
    return (
        select(func.count(ReviewReaction.id))
        .where(
            ReviewReaction.review_id == Review.id,
            ReviewReaction.reaction_type == reaction_type
        )
        .correlate(Review)
        .scalar_subquery()
    )


class ReviewRepository:
    """Repository for Review and ReviewReaction data access operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _detail_query(self):
        """Reviews joined with author, stall and reaction tallies.

        Row shape: (Review, reviewer_name, stall_name, stall_logo, likes, dislikes)
        """
        return (
            select(
                Review,
                User.name,
                FoodStall.name,
                FoodStall.logo_path,
                _reaction_count(ReactionType.LIKE).label("likes"),
                _reaction_count(ReactionType.DISLIKE).label("dislikes"),
            )
            .join(User, User.id == Review.user_id)
            .join(FoodStall, FoodStall.id == Review.stall_id)
        )

    async def find_by_id(self, review_id: int, for_update: bool = False) -> Review | None:
        query = select(Review).where(Review.id == review_id)

        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_detail(self, review_id: int):
        result = await self.db.execute(
            self._detail_query().where(Review.id == review_id)
        )
        return result.first()

    async def find_by_user_and_stall(self, user_id: int, stall_id: int) -> Review | None:
        result = await self.db.execute(
            select(Review).where(Review.user_id == user_id, Review.stall_id == stall_id)
        )
        return result.scalar_one_or_none()

    async def list(
        self,
        stall_id: int | None = None,
        user_id: int | None = None,
        include_hidden: bool = False,
        page: int = 1,
        page_size: int = 10
    ):
        """List reviews (newest first) with author and reaction tallies."""
        query = self._detail_query()

        if stall_id is not None:
            query = query.where(Review.stall_id == stall_id)
        if user_id is not None:
            query = query.where(Review.user_id == user_id)
        if not include_hidden:
            query = query.where(Review.is_hidden.is_(False))

        query = query.order_by(Review.created_at.desc(), Review.id.desc())
        return await paginate(self.db, query, page, page_size, scalars=False)

    async def recent(self, limit: int):
        """Latest visible reviews on active stalls."""
        query = (
            self._detail_query()
            .where(Review.is_hidden.is_(False), FoodStall.is_active.is_(True))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.all())

    async def create(self, review: Review) -> Review:
        self.db.add(review)
        await self.db.flush()
        return review

    async def rating_aggregate(self, stall_id: int) -> tuple[float | None, int]:
        """Average and count of the stall's non-hidden reviews."""
        result = await self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.stall_id == stall_id,
                Review.is_hidden.is_(False)
            )
        )
        average, count = result.one()
        return (float(average) if average is not None else None), int(count or 0)

    async def count(self, include_hidden: bool = False) -> int:
        query = select(func.count(Review.id))
        if not include_hidden:
            query = query.where(Review.is_hidden.is_(False))
        return (await self.db.execute(query)).scalar_one()

    async def count_hidden(self) -> int:
        return (
            await self.db.execute(select(func.count(Review.id)).where(Review.is_hidden.is_(True)))
        ).scalar_one()

    async def stall_ids_for_user(self, user_id: int) -> list[int]:
        result = await self.db.execute(
            select(Review.stall_id).where(Review.user_id == user_id).distinct()
        )
        return list(result.scalars().all())

    async def delete_reviews(self, review_ids) -> int:
        """Delete reviews with their reactions and reports.

        ``review_ids`` may be a list or a select of ids.

        Returns:
            Number of reviews deleted
        """
        await self.db.execute(delete(ReviewReaction).where(ReviewReaction.review_id.in_(review_ids)))
        await self.db.execute(delete(ReviewReport).where(ReviewReport.review_id.in_(review_ids)))
        result = await self.db.execute(delete(Review).where(Review.id.in_(review_ids)))
        return result.rowcount or 0

    # Reactions

    async def find_reaction(self, review_id: int, user_id: int) -> ReviewReaction | None:
        result = await self.db.execute(
            select(ReviewReaction).where(
                and_(ReviewReaction.review_id == review_id, ReviewReaction.user_id == user_id)
            )
        )
        return result.scalar_one_or_none()

    async def add_reaction(self, reaction: ReviewReaction) -> ReviewReaction:
        self.db.add(reaction)
        await self.db.flush()
        return reaction

    async def remove_reaction(self, reaction: ReviewReaction) -> None:
        await self.db.delete(reaction)
        await self.db.flush()

    async def reaction_counts(self, review_id: int) -> tuple[int, int]:
        """Return (likes, dislikes) for a review."""
        result = await self.db.execute(
            select(ReviewReaction.reaction_type, func.count(ReviewReaction.id))
            .where(ReviewReaction.review_id == review_id)
            .group_by(ReviewReaction.reaction_type)
        )
        counts = dict(result.all())
        return counts.get(ReactionType.LIKE, 0), counts.get(ReactionType.DISLIKE, 0)

    async def delete_reactions_by_user(self, user_id: int) -> None:
        await self.db.execute(delete(ReviewReaction).where(ReviewReaction.user_id == user_id))
