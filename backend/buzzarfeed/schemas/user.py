"""User profile and administration request schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..core.constants import DatabaseLimits


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=DatabaseLimits.NAME_MAX_LENGTH)
    email: EmailStr | None = None


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class AdminUserUpdate(BaseModel):
    """Admin edit of an account; omitted fields are left unchanged."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=DatabaseLimits.NAME_MAX_LENGTH)
    email: EmailStr | None = None
    user_type: str | None = None
    is_active: bool | None = None
