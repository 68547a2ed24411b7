"""Security Module - JWT sessions and password hashing.

A login issues a JWT that is carried either in the session cookie or in an
``Authorization: Bearer`` header; both are accepted everywhere.
"""

import re
from datetime import UTC, datetime, timedelta

from fastapi import Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import settings
from .constants import ErrorMessages, HttpHeaders, PasswordPolicy
from .exceptions import AuthenticationError
from .logging import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token.

    Args:
        data: Data to encode in the token (``sub`` must be the user id as a string)
        expires_delta: Token expiration time

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.JWT_EXPIRATION_MINUTES
        )

    to_encode.update({"exp": expire, "iat": datetime.now(UTC)})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM
    )


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Raises:
        AuthenticationError: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )

    except JWTError as e:
        logger.warning(
            "Invalid token",
            extra={"error": str(e)}
        )
        raise AuthenticationError(ErrorMessages.AUTHENTICATION_REQUIRED)


def extract_token(request: Request) -> str | None:
    """Return the raw JWT from the Bearer header or the session cookie."""
    auth_header = request.headers.get(HttpHeaders.AUTHORIZATION)
    if auth_header:
        parts = auth_header.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    return request.cookies.get(settings.SESSION_NAME)


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


def validate_password_strength(password: str) -> list[str]:
    """Check a password against the password policy.

    Returns:
        List of human readable problems (empty when the password is acceptable)

    Examples:
        >>> validate_password_strength("Secret123")
        []
        >>> validate_password_strength("short")
        ['Password must be at least 8 characters long', ...]
    """
    errors = []

    if len(password) < PasswordPolicy.MIN_LENGTH:
        errors.append(
            f"Password must be at least {PasswordPolicy.MIN_LENGTH} characters long"
        )
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")

    return errors
