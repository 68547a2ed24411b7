"""Closure Endpoints."""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.constants import Pagination, SuccessMessages
from ....db.database import get_db
from ....models import User
from ....schemas.common import PaginatedResponse, SuccessResponse, paginated_response, success_response
from ....schemas.workflow import ClosureCreate, DecisionNotes
from ....services.closure_service import ClosureService
from ...dependencies import client_ip, require_admin, require_auth

router = APIRouter()


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ask for your account to be closed"
)
async def create_closure(
    payload: ClosureCreate | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    """Every stall you own must be deactivated first."""
    closure = await ClosureService(db).create_closure(user, payload.reason if payload else None)
    return success_response(closure, SuccessMessages.CLOSURE_CREATED)


@router.get("", response_model=PaginatedResponse, summary="List account closure requests")
async def list_closures(
    status_filter: str | None = Query(None, alias="status"),
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.WORKFLOW_PAGE_SIZE, ge=Pagination.MIN_PAGE_SIZE, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    closures, total = await ClosureService(db).list_closures(
        user, status=status_filter, page=page, page_size=limit
    )
    return paginated_response(closures, total, page, limit)


@router.get("/{closure_id}", response_model=SuccessResponse, summary="Get an account closure request")
async def get_closure(
    closure_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    return success_response(await ClosureService(db).get_closure(user, closure_id))


@router.post("/{closure_id}/approve", response_model=SuccessResponse, summary="Approve (admin)")
async def approve_closure(
    closure_id: int,
    request: Request,
    payload: DecisionNotes | None = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Close the account, deleting the user and everything they own."""
    closure = await ClosureService(db).approve(
        admin,
        closure_id,
        admin_notes=payload.admin_notes if payload else None,
        ip_address=client_ip(request)
    )
    return success_response(closure, SuccessMessages.CLOSURE_APPROVED)


@router.post("/{closure_id}/reject", response_model=SuccessResponse, summary="Reject (admin)")
async def reject_closure(
    closure_id: int,
    request: Request,
    payload: DecisionNotes | None = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    closure = await ClosureService(db).reject(
        admin,
        closure_id,
        admin_notes=payload.admin_notes if payload else None,
        ip_address=client_ip(request)
    )
    return success_response(closure, SuccessMessages.CLOSURE_REJECTED)
