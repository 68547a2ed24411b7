"""Amendment, closure and admin request schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AmendmentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    stall_id: int
    field_name: str
    new_value: str = Field(..., min_length=1)
    reason: str | None = None


class ClosureCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: str | None = None


class DecisionNotes(BaseModel):
    """Optional admin notes for an amendment or closure decision."""
    admin_notes: str | None = None


class ConvertToAdminRequest(BaseModel):
    email: EmailStr
