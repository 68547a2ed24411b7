"""Authentication request schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..core.constants import DatabaseLimits, UserType


class RegisterRequest(BaseModel):
    """New account. Password strength is checked by the service."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=DatabaseLimits.NAME_MAX_LENGTH)
    email: EmailStr
    password: str = Field(..., min_length=1)
    account_type: str = UserType.FOOD_ENTHUSIAST


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1)
