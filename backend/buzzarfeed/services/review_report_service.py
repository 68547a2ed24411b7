"""Review Report Service.

Users flag reviews; admins work through the pending queue grouped by review
and either delete the review or dismiss the reports.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import (
    AdminAction,
    EntityType,
    ErrorMessages,
    ModerationAction,
    ReportStatus,
)
from ..core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from ..core.logging import get_logger
from ..core.metrics import review_moderations_total, review_reports_total
from ..domain.state_machine import REPORT_WORKFLOW
from ..domain.transformers import report_to_dict
from ..models import ReviewModeration, ReviewReport, User
from ..models.base import utcnow
from ..repositories import ReportRepository, ReviewRepository, StallRepository, UserRepository
from ..utils import sanitize_string
from ..utils.transaction_helpers import safe_transaction
from .admin_log_service import AdminLogService
from .cache_service import cache
from .notification_service import notifier
from .rating_service import recompute_stall_rating

logger = get_logger(__name__)


class ReviewReportService:
    """Service for review reports and report-driven moderation."""

    def __init__(self, db: AsyncSession, repository: ReportRepository | None = None):
        self.db = db
        self.repository = repository or ReportRepository(db)
        self.reviews = ReviewRepository(db)
        self.admin_logs = AdminLogService(db)

    async def report_review(
        self,
        user: User,
        review_id: int,
        reason: str,
        details: str | None = None
    ) -> dict:
        """File a report against a review.

        A reporter has at most one report per review: a previously reviewed or
        dismissed report is reopened instead of duplicated.

        Raises:
            NotFoundError: Review does not exist
            PermissionDeniedError: Reporting your own review
            ConflictError: Your report on this review is still pending
        """
        review = await self.reviews.find_by_id(review_id)
        if not review:
            raise NotFoundError(ErrorMessages.REVIEW_NOT_FOUND)

        if review.user_id == user.id:
            raise PermissionDeniedError(ErrorMessages.CANNOT_REPORT_OWN)

        existing = await self.repository.find_by_review_and_reporter(review.id, user.id)
        if existing is not None and existing.status == ReportStatus.PENDING:
            raise ConflictError(ErrorMessages.ALREADY_REPORTED)

        try:
            async with safe_transaction(self.db):
                if existing is not None:
                    REPORT_WORKFLOW.validate_transition(existing.status, ReportStatus.PENDING)
                    existing.status = ReportStatus.PENDING
                    existing.reason = sanitize_string(reason)
                    existing.details = sanitize_string(details) or None
                    existing.reviewed_by = None
                    existing.review_notes = None
                    existing.reviewed_at = None
                    report = existing
                else:
                    report = await self.repository.create(
                        ReviewReport(
                            review_id=review.id,
                            reporter_id=user.id,
                            reason=sanitize_string(reason),
                            details=sanitize_string(details) or None,
                            status=ReportStatus.PENDING
                        )
                    )
        except IntegrityError:
            # uq_report_review_reporter
            raise ConflictError(ErrorMessages.ALREADY_REPORTED)

        review_reports_total.inc()
        logger.info(
            "Review reported",
            extra={'review_id': review.id, 'reporter_id': user.id, 'reopened': existing is not None}
        )
        return report_to_dict(report, user.name)

    async def get_pending_reports(self, page: int = 1, page_size: int = 20) -> tuple[list[dict], int]:
        """Pending reports grouped by review, most reported first."""
        rows, total = await self.repository.pending_groups(page=page, page_size=page_size)

        review_ids = [review.id for review, *_ in rows]
        reports_by_review: dict[int, list[dict]] = {review_id: [] for review_id in review_ids}
        for report, reporter_name in await self.repository.pending_for_reviews(review_ids):
            reports_by_review[report.review_id].append(report_to_dict(report, reporter_name))

        groups = []
        for review, author_name, stall_name, total_reports, first_report_date in rows:
            groups.append({
                "review_id": review.id,
                "stall_id": review.stall_id,
                "stall_name": stall_name,
                "author_id": review.user_id,
                "author_name": author_name,
                "rating": review.rating,
                "title": review.title,
                "comment": review.comment,
                "is_hidden": review.is_hidden,
                "review_created_at": review.created_at,
                "total_reports": total_reports,
                "first_report_date": first_report_date,
                "reports": reports_by_review[review.id],
            })

        return groups, total

    async def delete_reported_review(
        self,
        admin: User,
        review_id: int,
        reason: str,
        ip_address: str | None = None
    ) -> None:
        """Remove a reported review.

        In one transaction: resolve pending reports as reviewed, record the
        moderation, delete the review with its reactions/reports and recompute
        the stall rating. The author is emailed after commit. Of two concurrent
        deletions of one review, the second finds nothing left to delete and
        fails with NotFoundError.
        """
        async with safe_transaction(self.db):
            review = await self.reviews.find_by_id(review_id, for_update=True)
            if not review:
                raise NotFoundError(ErrorMessages.REVIEW_NOT_FOUND)

            stall = await StallRepository(self.db).find_by_id(review.stall_id, with_relations=False)
            stall_name = stall.name if stall else ""
            author = await UserRepository(self.db).find_by_id(review.user_id)
            author_contact = (author.name, author.email) if author else None
            stall_id = review.stall_id

            await self.repository.resolve_pending(
                review_id,
                ReportStatus.REVIEWED,
                reviewed_by=admin.id,
                review_notes=reason,
                reviewed_at=utcnow()
            )
            await self.repository.add_moderation(
                ReviewModeration(
                    review_id=review_id,
                    stall_id=stall_id,
                    moderator_id=admin.id,
                    action=ModerationAction.DELETE,
                    reason=reason,
                    is_hidden=True
                )
            )
            if not await self.reviews.delete_reviews([review_id]):
                raise NotFoundError(ErrorMessages.REVIEW_NOT_FOUND)

            await recompute_stall_rating(self.db, stall_id)
            await self.admin_logs.log_review_deletion(admin.id, review_id, stall_name, reason, ip_address)

        await cache.invalidate_stall(stall_id)
        review_moderations_total.labels(action=ModerationAction.DELETE).inc()
        logger.info(
            "Reported review deleted",
            extra={'review_id': review_id, 'stall_id': stall_id, 'admin_id': admin.id}
        )

        if author_contact:
            await notifier.send_review_removed(author_contact[0], author_contact[1], stall_name, reason)

    async def dismiss_reports(
        self,
        admin: User,
        review_id: int,
        notes: str | None = None,
        ip_address: str | None = None
    ) -> int:
        """Dismiss every pending report on a review.

        Returns:
            Number of reports dismissed
        """
        async with safe_transaction(self.db):
            dismissed = await self.repository.resolve_pending(
                review_id,
                ReportStatus.DISMISSED,
                reviewed_by=admin.id,
                review_notes=notes,
                reviewed_at=utcnow()
            )
            if not dismissed:
                raise NotFoundError("No pending reports found for this review")

            await self.admin_logs.log_action(
                admin.id,
                EntityType.REVIEW,
                review_id,
                AdminAction.DISMISS_REPORTS,
                f"Dismissed {dismissed} report(s)" + (f" | Notes: {notes}" if notes else ""),
                ip_address
            )

        logger.info(
            "Reports dismissed",
            extra={'review_id': review_id, 'count': dismissed, 'admin_id': admin.id}
        )
        return dismissed

    async def get_stats(self) -> dict:
        return {
            "pending_reports": await self.repository.count_pending(),
            "hidden_reviews": await self.reviews.count_hidden(),
        }
