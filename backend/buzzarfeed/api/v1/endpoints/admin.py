"""Admin Console Endpoints.

Dashboard counters, the audit trail, account promotion and report-driven
review moderation. Every route requires an admin.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.constants import Pagination, SuccessMessages
from ....db.database import get_db
from ....domain.transformers import user_to_dict
from ....models import User
from ....schemas.common import PaginatedResponse, SuccessResponse, paginated_response, success_response
from ....schemas.review import DismissReportsRequest, ModerationRequest
from ....schemas.workflow import ConvertToAdminRequest
from ....services.admin_log_service import AdminLogService
from ....services.admin_service import AdminService
from ....services.review_report_service import ReviewReportService
from ....services.review_service import ReviewService
from ...dependencies import client_ip, require_admin

router = APIRouter()


@router.get("/dashboard", response_model=SuccessResponse, summary="Dashboard counters")
async def dashboard(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return success_response(await AdminService(db).get_dashboard_stats())


@router.get("/logs", response_model=PaginatedResponse, summary="Admin audit trail")
async def admin_logs(
    admin_id: int | None = Query(None),
    entity_type: str | None = Query(None),
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.ADMIN_LOGS_PAGE_SIZE, ge=Pagination.MIN_PAGE_SIZE, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Newest entries first."""
    logs, total = await AdminLogService(db).get_logs(
        admin_id=admin_id, entity_type=entity_type, page=page, page_size=limit
    )
    return paginated_response(logs, total, page, limit)


@router.post("/convert-to-admin", response_model=SuccessResponse, summary="Promote an account to admin")
async def convert_to_admin(
    payload: ConvertToAdminRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Owned stalls and applications of the promoted account are removed."""
    user = await AdminService(db).convert_to_admin(admin, payload.email, ip_address=client_ip(request))
    return success_response(user_to_dict(user), SuccessMessages.CONVERTED_TO_ADMIN)


@router.get("/reports", response_model=PaginatedResponse, summary="Pending reports grouped by review")
async def pending_reports(
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.WORKFLOW_PAGE_SIZE, ge=Pagination.MIN_PAGE_SIZE, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    groups, total = await ReviewReportService(db).get_pending_reports(page=page, page_size=limit)
    return paginated_response(groups, total, page, limit)


@router.get("/reports/stats", response_model=SuccessResponse, summary="Moderation counters")
async def report_stats(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return success_response(await ReviewReportService(db).get_stats())


@router.delete("/reports/{review_id}", response_model=SuccessResponse, summary="Delete a reported review")
async def delete_reported_review(
    review_id: int,
    payload: ModerationRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Resolves the pending reports and emails the review's author."""
    await ReviewReportService(db).delete_reported_review(
        admin, review_id, payload.reason, ip_address=client_ip(request)
    )
    return success_response(message=SuccessMessages.REVIEW_DELETED)


@router.post("/reports/{review_id}/dismiss", response_model=SuccessResponse, summary="Dismiss reports")
async def dismiss_reports(
    review_id: int,
    request: Request,
    payload: DismissReportsRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    dismissed = await ReviewReportService(db).dismiss_reports(
        admin,
        review_id,
        notes=payload.notes if payload else None,
        ip_address=client_ip(request)
    )
    return success_response({"dismissed": dismissed}, SuccessMessages.REPORTS_DISMISSED)


@router.post("/reviews/{review_id}/hide", response_model=SuccessResponse, summary="Hide a review")
async def hide_review(
    review_id: int,
    payload: ModerationRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Hidden reviews drop out of listings and the stall's rating."""
    review = await ReviewService(db).set_hidden(
        admin, review_id, True, payload.reason, ip_address=client_ip(request)
    )
    return success_response(review, SuccessMessages.REVIEW_HIDDEN)


@router.post("/reviews/{review_id}/unhide", response_model=SuccessResponse, summary="Restore a hidden review")
async def unhide_review(
    review_id: int,
    payload: ModerationRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    review = await ReviewService(db).set_hidden(
        admin, review_id, False, payload.reason, ip_address=client_ip(request)
    )
    return success_response(review, SuccessMessages.REVIEW_UNHIDDEN)
