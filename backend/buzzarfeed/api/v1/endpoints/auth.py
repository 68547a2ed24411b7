"""Authentication Endpoints.

Registration, login/logout (session cookie plus bearer token) and password
reset. Credential endpoints are rate limited per client.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.config import settings
from ....core.constants import HttpHeaders, SuccessMessages
from ....core.rate_limiting import auth_rate_limit, limiter
from ....db.database import get_db
from ....domain.transformers import user_to_dict
from ....models import User
from ....schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from ....schemas.common import ErrorResponse, SuccessResponse, success_response
from ....services.auth_service import AuthService
from ...dependencies import client_ip, get_optional_user

router = APIRouter()


@router.post(
    "/register",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    responses={400: {"model": ErrorResponse, "description": "Validation error or duplicate account"}}
)
@limiter.limit(auth_rate_limit)
async def register(
    request: Request,
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Create a food enthusiast or stall owner account."""
    user = await AuthService(db).register(
        payload.name, payload.email, payload.password, payload.account_type
    )
    return success_response(user_to_dict(user), SuccessMessages.REGISTERED)


@router.post(
    "/login",
    response_model=SuccessResponse,
    summary="Log in",
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials or deactivated account"}}
)
@limiter.limit(auth_rate_limit)
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Log in with email and password.

    The token is returned in the body and also set as the http-only session
    cookie, so browser clients and API clients can both use it.
    """
    user, token = await AuthService(db).authenticate(payload.email, payload.password)

    response.set_cookie(
        key=settings.SESSION_NAME,
        value=token,
        max_age=settings.SESSION_LIFETIME,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax"
    )

    return success_response(
        {
            "user": user_to_dict(user),
            "access_token": token,
            "token_type": "bearer",
            "expires_in": settings.SESSION_LIFETIME,
        },
        SuccessMessages.LOGIN
    )


@router.post("/logout", response_model=SuccessResponse, summary="Log out")
async def logout(response: Response):
    response.delete_cookie(settings.SESSION_NAME)
    return success_response(message=SuccessMessages.LOGOUT)


@router.get("/check", response_model=SuccessResponse, summary="Check the current session")
async def check_session(user: User | None = Depends(get_optional_user)):
    if user is None:
        return success_response({"authenticated": False})
    return success_response({"authenticated": True, "user": user_to_dict(user)})


@router.post("/forgot-password", response_model=SuccessResponse, summary="Request a password reset email")
@limiter.limit(auth_rate_limit)
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """Always answers with the same message, whether or not the email is registered."""
    await AuthService(db).request_password_reset(
        payload.email,
        ip_address=client_ip(request),
        user_agent=request.headers.get(HttpHeaders.USER_AGENT)
    )
    return success_response(message=SuccessMessages.PASSWORD_RESET_REQUESTED)


@router.post(
    "/reset-password",
    response_model=SuccessResponse,
    summary="Reset password with a token",
    responses={400: {"model": ErrorResponse, "description": "Invalid or expired token, or weak password"}}
)
@limiter.limit(auth_rate_limit)
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    await AuthService(db).reset_password(payload.token, payload.password)
    return success_response(message=SuccessMessages.PASSWORD_RESET)
