"""Authentication Service.

Registration, login and the password reset flow.
"""

from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.constants import ErrorMessages, UserType
from ..core.exceptions import AuthenticationError, ConflictError, ValidationError
from ..core.logging import get_logger
from ..core.security import (
    create_access_token,
    hash_password,
    validate_password_strength,
    verify_password,
)
from ..models import PasswordResetToken, User
from ..models.base import utcnow
from ..repositories import UserRepository
from ..utils import generate_reset_token, sanitize_string
from ..utils.transaction_helpers import safe_transaction
from .notification_service import notifier

logger = get_logger(__name__)


def ensure_password_strength(password: str) -> None:
    """Raise ValidationError listing every password policy violation."""
    problems = validate_password_strength(password)
    if problems:
        raise ValidationError(". ".join(problems), errors={"password": problems})


class AuthService:
    """Service for account credentials and sessions."""

    def __init__(self, db: AsyncSession, repository: UserRepository | None = None):
        self.db = db
        self.repository = repository or UserRepository(db)

    async def register(self, name: str, email: str, password: str, account_type: str) -> User:
        """Create a new account.

        Raises:
            ValidationError: Bad account type or weak password
            ConflictError: Name or email already registered
        """
        name = sanitize_string(name)
        email = sanitize_string(email).lower()

        if account_type not in UserType.REGISTRABLE_TYPES:
            raise ValidationError(
                "Invalid account type",
                errors={"account_type": [f"Must be one of: {', '.join(UserType.REGISTRABLE_TYPES)}"]}
            )

        ensure_password_strength(password)

        if await self.repository.email_taken(email):
            raise ConflictError("Email is already registered", errors={"email": ["Email is already registered"]})
        if await self.repository.name_taken(name):
            raise ConflictError("Name is already taken", errors={"name": ["Name is already taken"]})

        try:
            async with safe_transaction(self.db):
                user = await self.repository.create(
                    User(
                        name=name,
                        email=email,
                        password_hash=hash_password(password),
                        user_type=account_type,
                        is_active=True
                    )
                )
        except IntegrityError:
            raise ConflictError("Name or email is already registered")

        logger.info(
            "User registered",
            extra={'user_id': user.id, 'user_type': user.user_type}
        )
        return user

    async def authenticate(self, email: str, password: str) -> tuple[User, str]:
        """Check credentials and issue a session token.

        Returns:
            (user, access_token)

        Raises:
            AuthenticationError: Unknown email, wrong password or deactivated account
        """
        user = await self.repository.find_by_email(email)

        if not user or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt", extra={'email_domain': email.rpartition("@")[2]})
            raise AuthenticationError(ErrorMessages.INVALID_CREDENTIALS)

        if not user.is_active:
            logger.warning("Login attempt on deactivated account", extra={'user_id': user.id})
            raise AuthenticationError(ErrorMessages.ACCOUNT_DEACTIVATED)

        token = create_access_token(
            data={"sub": str(user.id), "user_type": user.user_type},
            expires_delta=timedelta(seconds=settings.SESSION_LIFETIME)
        )

        logger.info("User logged in", extra={'user_id': user.id})
        return user, token

    async def request_password_reset(
        self,
        email: str,
        ip_address: str | None = None,
        user_agent: str | None = None
    ) -> None:
        """Start the reset flow.

        Unknown or inactive accounts are silently ignored so the response never
        reveals which emails are registered.
        """
        user = await self.repository.find_by_email(email)
        if not user or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return

        token = generate_reset_token()

        async with safe_transaction(self.db):
            await self.repository.add_reset_token(
                PasswordResetToken(
                    user_id=user.id,
                    token=token,
                    expires_at=utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRY_MINUTES),
                    ip_address=ip_address,
                    user_agent=(user_agent or "")[:255] or None
                )
            )

        logger.info("Password reset token issued", extra={'user_id': user.id})
        await notifier.send_password_reset(user.name, user.email, token)

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password using a reset token.

        Raises:
            ValidationError: Unknown, used or expired token, or weak password
        """
        reset_token = await self.repository.find_usable_reset_token(token, utcnow())
        if not reset_token:
            raise ValidationError(ErrorMessages.INVALID_RESET_TOKEN)

        ensure_password_strength(new_password)

        user = await self.repository.find_by_id(reset_token.user_id)
        if not user:
            raise ValidationError(ErrorMessages.INVALID_RESET_TOKEN)

        async with safe_transaction(self.db):
            user.password_hash = hash_password(new_password)
            reset_token.used_at = utcnow()

        logger.info("Password reset completed", extra={'user_id': user.id})
