"""User Endpoints.

Profile management for the signed-in user, and account administration.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.constants import Pagination, SuccessMessages
from ....db.database import get_db
from ....domain.transformers import user_to_dict
from ....models import User
from ....schemas.common import PaginatedResponse, SuccessResponse, paginated_response, success_response
from ....schemas.user import AdminUserUpdate, PasswordChange, ProfileUpdate
from ....services.user_service import UserService
from ...dependencies import client_ip, require_admin, require_auth

router = APIRouter()


@router.get("/profile", response_model=SuccessResponse, summary="Current user's profile")
async def get_profile(user: User = Depends(require_auth)):
    return success_response(user_to_dict(user))


@router.put("/profile", response_model=SuccessResponse, summary="Update name or email")
async def update_profile(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    updated = await UserService(db).update_profile(user, payload.name, payload.email)
    return success_response(user_to_dict(updated), SuccessMessages.PROFILE_UPDATED)


@router.put("/password", response_model=SuccessResponse, summary="Change password")
async def change_password(
    payload: PasswordChange,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    await UserService(db).change_password(user, payload.current_password, payload.new_password)
    return success_response(message=SuccessMessages.PASSWORD_CHANGED)


@router.get("", response_model=PaginatedResponse, summary="List users (admin)")
async def list_users(
    search: str | None = Query(None, description="Match on name or email"),
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.WORKFLOW_PAGE_SIZE, ge=Pagination.MIN_PAGE_SIZE, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    users, total = await UserService(db).list_users(search=search, page=page, page_size=limit)
    return paginated_response([user_to_dict(user) for user in users], total, page, limit)


@router.get("/{user_id}", response_model=SuccessResponse, summary="Get a user (admin)")
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return success_response(user_to_dict(await UserService(db).get_user(user_id)))


@router.put("/{user_id}", response_model=SuccessResponse, summary="Update a user (admin)")
async def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    user = await UserService(db).update_user(
        admin, user_id, payload.model_dump(exclude_unset=True), ip_address=client_ip(request)
    )
    return success_response(user_to_dict(user), SuccessMessages.USER_UPDATED)


@router.delete("/{user_id}", response_model=SuccessResponse, summary="Delete a user (admin)")
async def delete_user(
    user_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Delete an account and everything it owns.

    Admins with recorded admin actions cannot be deleted, and admins cannot
    delete themselves.
    """
    await UserService(db).delete_user(admin, user_id, ip_address=client_ip(request))
    return success_response(message=SuccessMessages.USER_DELETED)
