"""Review, reaction, report and moderation request schemas."""

from pydantic import BaseModel, ConfigDict, Field

from ..core.constants import DatabaseLimits, ReviewRules


class ReviewCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    stall_id: int
    rating: int = Field(..., ge=ReviewRules.MIN_RATING, le=ReviewRules.MAX_RATING)
    comment: str = Field(..., min_length=1)
    title: str | None = Field(None, max_length=255)
    is_anonymous: bool = False


class ReviewUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: int | None = Field(None, ge=ReviewRules.MIN_RATING, le=ReviewRules.MAX_RATING)
    comment: str | None = Field(None, min_length=1)
    title: str | None = Field(None, max_length=255)
    is_anonymous: bool | None = None


class ReactionRequest(BaseModel):
    review_id: int
    reaction_type: str


class ReportRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    review_id: int
    reason: str = Field(..., min_length=1, max_length=255)
    details: str | None = None


class ModerationRequest(BaseModel):
    """Reason recorded with a hide, unhide or delete."""
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: str = Field(..., min_length=1, max_length=DatabaseLimits.REASON_MAX_LENGTH)


class DismissReportsRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    notes: str | None = None
