"""Review Endpoints.

Reading and writing reviews, reactions, and reporting reviews to admins.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.constants import Pagination, ReviewRules, SuccessMessages
from ....db.database import get_db
from ....models import User
from ....schemas.common import PaginatedResponse, SuccessResponse, paginated_response, success_response
from ....schemas.review import ReactionRequest, ReportRequest, ReviewCreate, ReviewUpdate
from ....services.review_report_service import ReviewReportService
from ....services.review_service import ReviewService
from ...dependencies import get_optional_user, require_auth

router = APIRouter()


@router.get("", response_model=PaginatedResponse, summary="List visible reviews")
async def list_reviews(
    stall_id: int | None = Query(None),
    user_id: int | None = Query(None),
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.REVIEWS_PAGE_SIZE, ge=Pagination.MIN_PAGE_SIZE, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db)
):
    reviews, total = await ReviewService(db).list_reviews(
        stall_id=stall_id, user_id=user_id, page=page, page_size=limit
    )
    return paginated_response(reviews, total, page, limit)


@router.get("/recent", response_model=SuccessResponse, summary="Latest reviews on active stalls")
async def recent_reviews(
    limit: int = Query(ReviewRules.RECENT_LIMIT, ge=1, le=Pagination.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await ReviewService(db).get_recent(limit))


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a review"
)
async def create_review(
    payload: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    """One review per user per stall; the stall must be active."""
    review = await ReviewService(db).create_review(
        user,
        payload.stall_id,
        payload.rating,
        payload.comment,
        title=payload.title,
        is_anonymous=payload.is_anonymous
    )
    return success_response(review, SuccessMessages.REVIEW_CREATED)


@router.post("/react", response_model=SuccessResponse, summary="Like or dislike a review")
async def react_to_review(
    payload: ReactionRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    """Sending the same reaction again removes it; the other one switches it."""
    counts = await ReviewService(db).react(user, payload.review_id, payload.reaction_type)
    return success_response(counts, SuccessMessages.REACTION_SAVED)


@router.post(
    "/report",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report a review"
)
async def report_review(
    payload: ReportRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    report = await ReviewReportService(db).report_review(
        user, payload.review_id, payload.reason, payload.details
    )
    return success_response(report, SuccessMessages.REPORT_SUBMITTED)


@router.get("/{review_id}", response_model=SuccessResponse, summary="Get a review")
async def get_review(
    review_id: int,
    db: AsyncSession = Depends(get_db),
    viewer: User | None = Depends(get_optional_user)
):
    return success_response(await ReviewService(db).get_review(review_id, viewer))


@router.put("/{review_id}", response_model=SuccessResponse, summary="Edit your review")
async def update_review(
    review_id: int,
    payload: ReviewUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    review = await ReviewService(db).update_review(user, review_id, payload.model_dump(exclude_unset=True))
    return success_response(review, SuccessMessages.REVIEW_UPDATED)


@router.delete("/{review_id}", response_model=SuccessResponse, summary="Delete a review (author or admin)")
async def delete_review(
    review_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_auth)
):
    await ReviewService(db).delete_review(user, review_id)
    return success_response(message=SuccessMessages.REVIEW_DELETED)
