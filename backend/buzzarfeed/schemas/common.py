"""Response Envelope Schemas.

Every endpoint answers with the same envelope:

- success:   {success: true, message, data}
- paginated: {success: true, data, pagination: {total, page, perPage, totalPages}}
- error:     {success: false, message, errors}
"""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core.constants import SuccessMessages


class PaginationMeta(BaseModel):
    """Pagination block of a paginated response."""
    model_config = ConfigDict(populate_by_name=True)

    total: int
    page: int
    per_page: int = Field(..., alias="perPage")
    total_pages: int = Field(..., alias="totalPages")


class SuccessResponse(BaseModel):
    """Standard success response schema."""
    success: bool = True
    message: str = SuccessMessages.SUCCESS
    data: Any = None


class PaginatedResponse(BaseModel):
    """Standard paginated response schema."""
    success: bool = True
    data: list[Any]
    pagination: PaginationMeta


class ErrorResponse(BaseModel):
    """Standard error response schema."""
    success: bool = False
    message: str
    errors: Any = None


def success_response(data: Any = None, message: str = SuccessMessages.SUCCESS) -> dict:
    return {"success": True, "message": message, "data": data}


def paginated_response(items: list[Any], total: int, page: int, per_page: int) -> dict:
    """Build a paginated envelope; totalPages = ceil(total / perPage)."""
    return {
        "success": True,
        "data": items,
        "pagination": {
            "total": total,
            "page": page,
            "perPage": per_page,
            "totalPages": math.ceil(total / per_page) if per_page else 0,
        },
    }


def error_response(message: str, errors: Any = None) -> dict:
    return {"success": False, "message": message, "errors": errors if errors is not None else []}
