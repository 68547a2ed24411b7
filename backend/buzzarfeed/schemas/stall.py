"""Stall and menu request schemas."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.constants import DatabaseLimits, StallDefaults
from ..utils import normalize_category, split_categories


def parse_category_list(value: Any) -> list[str]:
    """Accept a list of labels or a comma separated string; return unique slugs.

    Raises:
        ValueError: If any category is unknown
    """
    if value is None:
        return []
    if isinstance(value, str):
        return split_categories(value)
    if not isinstance(value, (list, tuple)):
        raise ValueError("Categories must be a list or a comma separated string")

    categories = []
    for raw in value:
        slug = normalize_category(str(raw))
        if slug is None:
            raise ValueError(f"Invalid category: {raw}")
        if slug not in categories:
            categories.append(slug)
    return categories


class StallCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=StallDefaults.NAME_MIN_LENGTH,
        max_length=DatabaseLimits.STALL_NAME_MAX_LENGTH
    )
    description: str = Field(..., min_length=StallDefaults.DESCRIPTION_MIN_LENGTH)
    address: str = Field(..., min_length=1, max_length=DatabaseLimits.ADDRESS_MAX_LENGTH)
    latitude: float | None = None
    longitude: float | None = None
    hours: str | None = Field(None, max_length=255)
    logo_path: str | None = Field(None, max_length=DatabaseLimits.PATH_MAX_LENGTH)
    categories: list[str] = Field(default_factory=list)

    @field_validator('categories', mode='before')
    @classmethod
    def validate_categories(cls, v):
        return parse_category_list(v)


class StallUpdate(BaseModel):
    """Partial stall update; ``is_active`` is honoured for admins only."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(
        None,
        min_length=StallDefaults.NAME_MIN_LENGTH,
        max_length=DatabaseLimits.STALL_NAME_MAX_LENGTH
    )
    description: str | None = Field(None, min_length=StallDefaults.DESCRIPTION_MIN_LENGTH)
    address: str | None = Field(None, min_length=1, max_length=DatabaseLimits.ADDRESS_MAX_LENGTH)
    latitude: float | None = None
    longitude: float | None = None
    hours: str | None = Field(None, max_length=255)
    logo_path: str | None = Field(None, max_length=DatabaseLimits.PATH_MAX_LENGTH)
    categories: list[str] | None = None
    is_active: bool | None = None

    @field_validator('categories', mode='before')
    @classmethod
    def validate_categories(cls, v):
        if v is None:
            return None
        return parse_category_list(v)


class MenuItemCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=DatabaseLimits.STALL_NAME_MAX_LENGTH)
    description: str | None = None
    price: Decimal = Field(..., ge=0, max_digits=DatabaseLimits.PRICE_PRECISION, decimal_places=DatabaseLimits.PRICE_SCALE)
    image_path: str | None = Field(None, max_length=DatabaseLimits.PATH_MAX_LENGTH)
    is_available: bool = True


class MenuItemUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=DatabaseLimits.STALL_NAME_MAX_LENGTH)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0, max_digits=DatabaseLimits.PRICE_PRECISION, decimal_places=DatabaseLimits.PRICE_SCALE)
    image_path: str | None = Field(None, max_length=DatabaseLimits.PATH_MAX_LENGTH)
    is_available: bool | None = None
