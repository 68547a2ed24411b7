"""Review Report Repository.

Data access for review reports and the moderation history.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import ReportStatus
from ..models import FoodStall, Review, ReviewModeration, ReviewReport, User
from .base import clamp_pagination


class ReportRepository:
    """Repository for ReviewReport and ReviewModeration data access operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_review_and_reporter(self, review_id: int, reporter_id: int) -> ReviewReport | None:
        result = await self.db.execute(
            select(ReviewReport).where(
                ReviewReport.review_id == review_id,
                ReviewReport.reporter_id == reporter_id
            )
        )
        return result.scalar_one_or_none()

    async def create(self, report: ReviewReport) -> ReviewReport:
        self.db.add(report)
        await self.db.flush()
        return report

    async def pending_groups(self, page: int = 1, page_size: int = 20):
        """Reviews with pending reports, most reported first.

        Row shape: (Review, author_name, stall_name, total_reports, first_report_date)

        Returns:
            (rows, total_groups)
        """
        page, page_size = clamp_pagination(page, page_size)

        total_reports = func.count(ReviewReport.id).label("total_reports")
        first_report_date = func.min(ReviewReport.created_at).label("first_report_date")

        grouped = (
            select(ReviewReport.review_id, total_reports, first_report_date)
            .where(ReviewReport.status == ReportStatus.PENDING)
            .group_by(ReviewReport.review_id)
            .subquery()
        )

        total = (
            await self.db.execute(select(func.count()).select_from(grouped))
        ).scalar_one()

        query = (
            select(
                Review,
                User.name,
                FoodStall.name,
                grouped.c.total_reports,
                grouped.c.first_report_date,
            )
            .join(grouped, grouped.c.review_id == Review.id)
            .join(User, User.id == Review.user_id)
            .join(FoodStall, FoodStall.id == Review.stall_id)
            .order_by(grouped.c.total_reports.desc(), grouped.c.first_report_date.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)
        return list(result.all()), total

    async def pending_for_reviews(self, review_ids: list[int]):
        """Pending reports for the given reviews with reporter names."""
        if not review_ids:
            return []
        result = await self.db.execute(
            select(ReviewReport, User.name)
            .join(User, User.id == ReviewReport.reporter_id)
            .where(
                ReviewReport.review_id.in_(review_ids),
                ReviewReport.status == ReportStatus.PENDING
            )
            .order_by(ReviewReport.created_at.desc(), ReviewReport.id.desc())
        )
        return list(result.all())

    async def resolve_pending(
        self,
        review_id: int,
        status: str,
        reviewed_by: int,
        review_notes: str | None,
        reviewed_at: datetime
    ) -> int:
        """Move every pending report of a review to ``status``. Returns rows updated."""
        result = await self.db.execute(
            update(ReviewReport)
            .where(
                ReviewReport.review_id == review_id,
                ReviewReport.status == ReportStatus.PENDING
            )
            .values(
                status=status,
                reviewed_by=reviewed_by,
                review_notes=review_notes,
                reviewed_at=reviewed_at
            )
        )
        return result.rowcount or 0

    async def count_pending(self) -> int:
        return (
            await self.db.execute(
                select(func.count(ReviewReport.id)).where(ReviewReport.status == ReportStatus.PENDING)
            )
        ).scalar_one()

    async def delete_by_reporter(self, reporter_id: int) -> None:
        await self.db.execute(delete(ReviewReport).where(ReviewReport.reporter_id == reporter_id))

    async def add_moderation(self, moderation: ReviewModeration) -> ReviewModeration:
        self.db.add(moderation)
        await self.db.flush()
        return moderation
