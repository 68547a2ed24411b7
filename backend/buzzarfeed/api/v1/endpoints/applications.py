"""Application Endpoints.

Stall applications: vendors submit and track them, admins decide.
"""

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.constants import ApplicationStatus, Pagination, SuccessMessages
from ....db.database import get_db
from ....models import User
from ....schemas.application import (
    ApplicationApprove,
    ApplicationCreate,
    ApplicationReject,
    ApplicationUpdate,
)
from ....schemas.common import (
    ErrorResponse,
    PaginatedResponse,
    SuccessResponse,
    paginated_response,
    success_response,
)
from ....services.application_service import ApplicationService
from ...dependencies import client_ip, require_admin, require_auth

router = APIRouter()


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a stall application",
    responses={
        400: {"model": ErrorResponse, "description": "Validation error or pending application exists"},
        401: {"model": ErrorResponse, "description": "Authentication required"},
    },
    openapi_extra={
        "examples": {
            "street_food_stall": {
                "summary": "Street food stall",
                "value": {
                    "stall_name": "Kuya's Isaw",
                    "description": "Grilled street food favourites",
                    "location": "Block 3, Food Park",
                    "categories": ["Street Food", "snacks"],
                    "map_x": 120.5,
                    "map_y": 88.0
                }
            }
        }
    }
)
async def create_application(
    payload: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    """Submit an application for a new stall.

    **Rules:**
    - stall_name at least 2 characters, description at least 5
    - at least one valid category (display names are normalized)
    - only one pending application per user
    """
    application = await ApplicationService(db).create_application(user, payload.model_dump())
    return success_response(application, SuccessMessages.APPLICATION_CREATED)


@router.get("", response_model=PaginatedResponse, summary="List applications")
async def list_applications(
    status_filter: str | None = Query(
        None, alias="status", description=f"One of: {', '.join(ApplicationStatus.ALL_STATUSES)}"
    ),
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.WORKFLOW_PAGE_SIZE, ge=Pagination.MIN_PAGE_SIZE, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    """Admins see every application; other users see their own."""
    applications, total = await ApplicationService(db).list_applications(
        user, status=status_filter, page=page, page_size=limit
    )
    return paginated_response(applications, total, page, limit)


@router.get("/{application_id}", response_model=SuccessResponse, summary="Get an application")
async def get_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    return success_response(await ApplicationService(db).get_application(user, application_id))


@router.put("/{application_id}", response_model=SuccessResponse, summary="Edit a pending application")
async def update_application(
    application_id: int,
    payload: ApplicationUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    application = await ApplicationService(db).update_application(
        user, application_id, payload.model_dump(exclude_unset=True)
    )
    return success_response(application, SuccessMessages.APPLICATION_UPDATED)


@router.put(
    "/{application_id}/documents/{document}",
    response_model=SuccessResponse,
    summary="Upload an application document",
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported type, empty or oversized file"},
        403: {"model": ErrorResponse, "description": "Not your application"},
    }
)
async def upload_document(
    application_id: int,
    document: str,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    """Attach a file to your pending application as multipart field ``file``.

    **document:** one of bir, permit, dti_sec, logo
    - bir, permit, dti_sec: JPEG, PNG or PDF
    - logo: JPEG or PNG
    - at most MAX_UPLOAD_SIZE_MB per file; an upload replaces the previous file
    """
    application = await ApplicationService(db).upload_document(user, application_id, document, file)
    return success_response(application, SuccessMessages.DOCUMENT_UPLOADED)


@router.get(
    "/{application_id}/documents/{document}",
    response_class=FileResponse,
    summary="Download an application document",
    responses={404: {"model": ErrorResponse, "description": "No such document"}}
)
async def download_document(
    application_id: int,
    document: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    """Stream a stored file to the applicant or an admin."""
    path = await ApplicationService(db).get_document(user, application_id, document)
    return FileResponse(path, filename=path.name)


@router.post("/{application_id}/approve", response_model=SuccessResponse, summary="Approve (admin)")
async def approve_application(
    application_id: int,
    request: Request,
    payload: ApplicationApprove | None = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Approve the application, creating the stall and promoting the applicant."""
    result = await ApplicationService(db).approve(
        admin,
        application_id,
        review_notes=payload.review_notes if payload else None,
        ip_address=client_ip(request)
    )
    return success_response(result, SuccessMessages.APPLICATION_APPROVED)


@router.post("/{application_id}/reject", response_model=SuccessResponse, summary="Reject (admin)")
async def reject_application(
    application_id: int,
    payload: ApplicationReject,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    application = await ApplicationService(db).reject(
        admin, application_id, payload.reason, ip_address=client_ip(request)
    )
    return success_response(application, SuccessMessages.APPLICATION_REJECTED)


@router.post("/{application_id}/archive", response_model=SuccessResponse, summary="Archive (admin)")
async def archive_application(
    application_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    application = await ApplicationService(db).archive(admin, application_id, ip_address=client_ip(request))
    return success_response(application, SuccessMessages.APPLICATION_ARCHIVED)
