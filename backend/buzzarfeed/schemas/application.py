"""Stall application request schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.constants import DatabaseLimits, StallDefaults
from .stall import parse_category_list


class ApplicationCreate(BaseModel):
    """Application for a new stall.

    Categories may be sent as a list or a comma separated string; display
    variants ("Street Food", "rice-meals") are normalized to slugs. Documents
    and the logo are uploaded separately once the application exists.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    stall_name: str = Field(
        ...,
        min_length=StallDefaults.NAME_MIN_LENGTH,
        max_length=DatabaseLimits.STALL_NAME_MAX_LENGTH
    )
    description: str = Field(..., min_length=StallDefaults.DESCRIPTION_MIN_LENGTH)
    location: str = Field(..., min_length=1, max_length=DatabaseLimits.ADDRESS_MAX_LENGTH)
    categories: list[str]
    map_x: float | None = None
    map_y: float | None = None

    @field_validator('categories', mode='before')
    @classmethod
    def validate_categories(cls, v):
        categories = parse_category_list(v)
        if not categories:
            raise ValueError("At least one category is required")
        return categories


class ApplicationUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    stall_name: str | None = Field(
        None,
        min_length=StallDefaults.NAME_MIN_LENGTH,
        max_length=DatabaseLimits.STALL_NAME_MAX_LENGTH
    )
    description: str | None = Field(None, min_length=StallDefaults.DESCRIPTION_MIN_LENGTH)
    location: str | None = Field(None, min_length=1, max_length=DatabaseLimits.ADDRESS_MAX_LENGTH)
    categories: list[str] | None = None
    map_x: float | None = None
    map_y: float | None = None

    @field_validator('categories', mode='before')
    @classmethod
    def validate_categories(cls, v):
        if v is None:
            return None
        categories = parse_category_list(v)
        if not categories:
            raise ValueError("At least one category is required")
        return categories


class ApplicationApprove(BaseModel):
    review_notes: str | None = None


class ApplicationReject(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: str = Field(..., min_length=1)
