"""Amendment Endpoints."""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.constants import Pagination, SuccessMessages
from ....db.database import get_db
from ....models import User
from ....schemas.common import PaginatedResponse, SuccessResponse, paginated_response, success_response
from ....schemas.workflow import AmendmentCreate, DecisionNotes
from ....services.amendment_service import AmendmentService
from ...dependencies import client_ip, require_admin, require_auth

router = APIRouter()


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a change to your stall"
)
async def create_amendment(
    payload: AmendmentCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    amendment = await AmendmentService(db).create_amendment(
        user, payload.stall_id, payload.field_name, payload.new_value, payload.reason
    )
    return success_response(amendment, SuccessMessages.AMENDMENT_CREATED)


@router.get("", response_model=PaginatedResponse, summary="List amendment requests")
async def list_amendments(
    status_filter: str | None = Query(None, alias="status"),
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.WORKFLOW_PAGE_SIZE, ge=Pagination.MIN_PAGE_SIZE, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    amendments, total = await AmendmentService(db).list_amendments(
        user, status=status_filter, page=page, page_size=limit
    )
    return paginated_response(amendments, total, page, limit)


@router.get("/{amendment_id}", response_model=SuccessResponse, summary="Get an amendment request")
async def get_amendment(
    amendment_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    return success_response(await AmendmentService(db).get_amendment(user, amendment_id))


@router.post("/{amendment_id}/approve", response_model=SuccessResponse, summary="Approve (admin)")
async def approve_amendment(
    amendment_id: int,
    request: Request,
    payload: DecisionNotes | None = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Apply the requested change to the stall."""
    amendment = await AmendmentService(db).approve(
        admin,
        amendment_id,
        admin_notes=payload.admin_notes if payload else None,
        ip_address=client_ip(request)
    )
    return success_response(amendment, SuccessMessages.AMENDMENT_APPROVED)


@router.post("/{amendment_id}/reject", response_model=SuccessResponse, summary="Reject (admin)")
async def reject_amendment(
    amendment_id: int,
    request: Request,
    payload: DecisionNotes | None = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    amendment = await AmendmentService(db).reject(
        admin,
        amendment_id,
        admin_notes=payload.admin_notes if payload else None,
        ip_address=client_ip(request)
    )
    return success_response(amendment, SuccessMessages.AMENDMENT_REJECTED)
