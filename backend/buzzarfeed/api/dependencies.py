"""FastAPI Dependencies for Authentication and Authorization.

The session token (cookie or Bearer header) identifies the user; the user row
is loaded on every request so deactivation and role changes apply at once.
The resolved user is bound to the log context as the request's actor.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import ErrorMessages
from ..core.exceptions import AuthenticationError, PermissionDeniedError
from ..core.logging import bind_actor, get_logger
from ..core.security import extract_token, verify_token
from ..db.database import get_db
from ..models import User
from ..repositories import UserRepository

logger = get_logger(__name__)


async def _load_user(db: AsyncSession, payload: dict) -> User | None:
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    return await UserRepository(db).find_by_id(user_id)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> User:
    """Resolve the signed-in user.

    Raises:
        AuthenticationError: 401 if the token is missing, invalid, points to a
            deleted user, or the account is deactivated
    """
    token = extract_token(request)
    if not token:
        raise AuthenticationError(ErrorMessages.AUTHENTICATION_REQUIRED)

    user = await _load_user(db, verify_token(token))
    if not user:
        raise AuthenticationError(ErrorMessages.AUTHENTICATION_REQUIRED)

    if not user.is_active:
        raise AuthenticationError(ErrorMessages.ACCOUNT_DEACTIVATED)

    bind_actor(user.id, user.user_type)
    return user


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> User | None:
    """Like get_current_user, but anonymous visitors get None instead of a 401."""
    token = extract_token(request)
    if not token:
        return None

    try:
        payload = verify_token(token)
    except AuthenticationError:
        return None

    user = await _load_user(db, payload)
    if user is None or not user.is_active:
        return None
    bind_actor(user.id, user.user_type)
    return user


async def require_auth(
    current_user: User = Depends(get_current_user)
) -> User:
    """Dependency that requires authentication for an endpoint.

    Usage:
        @router.get("/profile")
        async def profile(user: User = Depends(require_auth)):
            ...
    """
    return current_user


async def require_admin(
    request: Request,
    current_user: User = Depends(get_current_user)
) -> User:
    """Dependency that requires the admin role for an endpoint.

    Raises:
        AuthenticationError: 401 if authentication fails
        PermissionDeniedError: 403 if the user is not an admin
    """
    if not current_user.is_admin:
        logger.warning(
            "Unauthorized access attempt - admin required",
            extra={
                "user_id": current_user.id,
                "user_type": current_user.user_type,
                "path": request.url.path
            }
        )
        raise PermissionDeniedError(ErrorMessages.ADMIN_REQUIRED)

    return current_user


def client_ip(request: Request) -> str | None:
    """Client address recorded in admin logs and reset tokens."""
    return request.client.host if request.client else None
