"""Stall Endpoints.

Public stall directory, stall management and menus.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.config import settings
from ....core.constants import Pagination, StallDefaults, SuccessMessages
from ....db.database import get_db
from ....models import User
from ....schemas.common import PaginatedResponse, SuccessResponse, paginated_response, success_response
from ....schemas.stall import MenuItemCreate, MenuItemUpdate, StallCreate, StallUpdate
from ....services.menu_service import MenuService
from ....services.review_service import ReviewService
from ....services.stall_service import StallService
from ...dependencies import client_ip, require_admin, require_auth

router = APIRouter()


@router.get("", response_model=PaginatedResponse, summary="Browse active stalls")
async def list_stalls(
    search: str | None = Query(None, description="Match on name or description"),
    category: str | None = Query(None, description="Category slug or display name"),
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(settings.ITEMS_PER_PAGE, ge=Pagination.MIN_PAGE_SIZE, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db)
):
    stalls, total = await StallService(db).list_stalls(
        search=search, category=category, page=page, page_size=limit
    )
    return paginated_response(stalls, total, page, limit)


@router.get("/featured", response_model=SuccessResponse, summary="Random featured stalls")
async def featured_stalls(
    limit: int = Query(StallDefaults.FEATURED_LIMIT, ge=1, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await StallService(db).get_featured(limit))


@router.get("/categories", response_model=SuccessResponse, summary="Categories in use")
async def stall_categories(db: AsyncSession = Depends(get_db)):
    return success_response(await StallService(db).get_categories())


@router.get("/mine", response_model=SuccessResponse, summary="Stalls owned by the current user")
async def my_stalls(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    return success_response(await StallService(db).list_owned(user))


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a stall (stall owners and admins)"
)
async def create_stall(
    payload: StallCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    stall = await StallService(db).create_stall(user, payload.model_dump())
    return success_response(stall, SuccessMessages.STALL_CREATED)


@router.get("/{stall_id}", response_model=SuccessResponse, summary="Stall details")
async def get_stall(stall_id: int, db: AsyncSession = Depends(get_db)):
    return success_response(await StallService(db).get_stall(stall_id))


@router.put("/{stall_id}", response_model=SuccessResponse, summary="Update a stall (owner or admin)")
async def update_stall(
    stall_id: int,
    payload: StallUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    stall = await StallService(db).update_stall(user, stall_id, payload.model_dump(exclude_unset=True))
    return success_response(stall, SuccessMessages.STALL_UPDATED)


@router.delete("/{stall_id}", response_model=SuccessResponse, summary="Delete a stall (admin)")
async def delete_stall(
    stall_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    await StallService(db).delete_stall(admin, stall_id, ip_address=client_ip(request))
    return success_response(message=SuccessMessages.STALL_DELETED)


@router.get("/{stall_id}/reviews", response_model=PaginatedResponse, summary="Visible reviews of a stall")
async def stall_reviews(
    stall_id: int,
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.REVIEWS_PAGE_SIZE, ge=Pagination.MIN_PAGE_SIZE, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db)
):
    reviews, total = await ReviewService(db).list_stall_reviews(stall_id, page=page, page_size=limit)
    return paginated_response(reviews, total, page, limit)


# Menu

@router.get("/{stall_id}/menu", response_model=SuccessResponse, summary="Available menu items")
async def get_menu(stall_id: int, db: AsyncSession = Depends(get_db)):
    return success_response(await MenuService(db).list_menu(stall_id))


@router.post(
    "/{stall_id}/menu",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a menu item (owner or admin)"
)
async def add_menu_item(
    stall_id: int,
    payload: MenuItemCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    item = await MenuService(db).add_item(user, stall_id, payload.model_dump())
    return success_response(item, SuccessMessages.MENU_ITEM_CREATED)


@router.put("/{stall_id}/menu/{item_id}", response_model=SuccessResponse, summary="Update a menu item")
async def update_menu_item(
    stall_id: int,
    item_id: int,
    payload: MenuItemUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    item = await MenuService(db).update_item(user, stall_id, item_id, payload.model_dump(exclude_unset=True))
    return success_response(item, SuccessMessages.MENU_ITEM_UPDATED)


@router.delete("/{stall_id}/menu/{item_id}", response_model=SuccessResponse, summary="Delete a menu item")
async def delete_menu_item(
    stall_id: int,
    item_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    await MenuService(db).delete_item(user, stall_id, item_id)
    return success_response(message=SuccessMessages.MENU_ITEM_DELETED)
