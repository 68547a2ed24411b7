"""User Service.

Profile management for the signed-in user and account administration.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import AdminAction, EntityType, ErrorMessages, UserType
from ..core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..core.logging import get_logger
from ..core.security import hash_password, verify_password
from ..models import User
from ..repositories import StallRepository, UserRepository
from ..utils import sanitize_string
from ..utils.transaction_helpers import safe_transaction
from .account_service import AccountDeletionService
from .admin_log_service import AdminLogService
from .auth_service import ensure_password_strength
from .cache_service import cache

logger = get_logger(__name__)


class UserService:
    """Service for user profiles and admin user management."""

    def __init__(self, db: AsyncSession, repository: UserRepository | None = None):
        self.db = db
        self.repository = repository or UserRepository(db)
        self.admin_logs = AdminLogService(db)

    async def _ensure_unique(self, user_id: int, name: str | None, email: str | None) -> None:
        if email is not None and await self.repository.email_taken(email, exclude_user_id=user_id):
            raise ConflictError("Email is already in use", errors={"email": ["Email is already in use"]})
        if name is not None and await self.repository.name_taken(name, exclude_user_id=user_id):
            raise ConflictError("Name is already taken", errors={"name": ["Name is already taken"]})

    async def _refresh_owned_stalls(self, user_id: int) -> None:
        """Drop cached stall payloads that embed this owner's name and email."""
        for stall_id in await StallRepository(self.db).ids_by_owner(user_id):
            await cache.invalidate_stall(stall_id)

    async def update_profile(self, user: User, name: str | None = None, email: str | None = None) -> User:
        """Update the signed-in user's name and/or email."""
        name = sanitize_string(name) or None
        email = sanitize_string(email).lower() or None

        await self._ensure_unique(user.id, name, email)

        async with safe_transaction(self.db):
            if name:
                user.name = name
            if email:
                user.email = email

        if name or email:
            await self._refresh_owned_stalls(user.id)

        logger.info("Profile updated", extra={'user_id': user.id})
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Change password after verifying the current one."""
        if not verify_password(current_password, user.password_hash):
            raise ValidationError(
                "Current password is incorrect",
                errors={"current_password": ["Current password is incorrect"]}
            )

        ensure_password_strength(new_password)

        async with safe_transaction(self.db):
            user.password_hash = hash_password(new_password)

        logger.info("Password changed", extra={'user_id': user.id})

    async def list_users(
        self,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20
    ) -> tuple[list[User], int]:
        return await self.repository.list(search=search, page=page, page_size=page_size)

    async def get_user(self, user_id: int) -> User:
        user = await self.repository.find_by_id(user_id)
        if not user:
            raise NotFoundError(ErrorMessages.USER_NOT_FOUND)
        return user

    async def update_user(
        self,
        admin: User,
        user_id: int,
        changes: dict[str, Any],
        ip_address: str | None = None
    ) -> User:
        """Admin update of name, email, user_type and is_active.

        Args:
            changes: Only the keys present are applied
        """
        user = await self.get_user(user_id)

        name = sanitize_string(changes.get("name")) or None
        email = sanitize_string(changes.get("email")).lower() or None
        user_type = changes.get("user_type")

        if user_type is not None and user_type not in UserType.ALL_TYPES:
            raise ValidationError(
                "Invalid user type",
                errors={"user_type": [f"Must be one of: {', '.join(UserType.ALL_TYPES)}"]}
            )

        if user.id == admin.id and changes.get("is_active") is False:
            raise ValidationError("You cannot deactivate your own account")

        await self._ensure_unique(user.id, name, email)

        async with safe_transaction(self.db):
            if name:
                user.name = name
            if email:
                user.email = email
            if user_type is not None:
                user.user_type = user_type
            if changes.get("is_active") is not None:
                user.is_active = bool(changes["is_active"])

            await self.admin_logs.log_action(
                admin.id,
                EntityType.USER,
                user.id,
                AdminAction.UPDATE_USER,
                f"Updated user: {user.name} ({user.email})",
                ip_address
            )

        if name or email:
            await self._refresh_owned_stalls(user.id)

        logger.info(
            "User updated by admin",
            extra={'user_id': user.id, 'admin_id': admin.id, 'fields': sorted(changes)}
        )
        return user

    async def delete_user(self, admin: User, user_id: int, ip_address: str | None = None) -> None:
        """Delete an account through the deletion cascade.

        Raises:
            PermissionDeniedError: Deleting yourself, or an admin with log history
        """
        if user_id == admin.id:
            raise PermissionDeniedError("You cannot delete your own account")

        user = await self.get_user(user_id)

        if await self.repository.has_admin_logs(user.id):
            raise PermissionDeniedError(
                "Cannot delete an admin who has recorded admin actions"
            )

        description = f"Deleted user: {user.name} ({user.email})"

        async with safe_transaction(self.db):
            stale_stalls = await AccountDeletionService(self.db).delete_account(user.id, source="admin")
            await self.admin_logs.log_action(
                admin.id, EntityType.USER, user_id, AdminAction.DELETE_USER, description, ip_address
            )

        for stall_id in stale_stalls:
            await cache.invalidate_stall(stall_id)
