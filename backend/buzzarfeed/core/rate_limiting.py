"""Rate Limiting Utilities.

Key function for slowapi combining the client IP with the user id from the
session token, so an authenticated user cannot dodge limits by switching IPs.
"""

from fastapi import Request
from jose import JWTError, jwt
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings
from .logging import get_logger
from .security import extract_token

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Get rate limiting key combining IP address and user_id from the JWT.

    Returns:
        - "ip:<ip_address>:user:<user_id>" for authenticated requests
        - "ip:<ip_address>" for unauthenticated requests
    """
    ip_address = get_remote_address(request)
    user_id = _extract_user_id_from_request(request)

    if user_id:
        return f"ip:{ip_address}:user:{user_id}"

    return f"ip:{ip_address}"


def _extract_user_id_from_request(request: Request) -> str | None:
    """Extract user_id from the session token without raising.

    Rate limiting must work even when the token is bad; we just don't use
    the user id then.
    """
    token = extract_token(request)
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None

    return payload.get("sub") or None


limiter = Limiter(
    key_func=get_rate_limit_key,
    enabled=settings.ENVIRONMENT != "test"
)


def auth_rate_limit() -> str:
    """Limit string applied to the credential endpoints."""
    return f"{settings.API_RATE_LIMIT}/minute"
