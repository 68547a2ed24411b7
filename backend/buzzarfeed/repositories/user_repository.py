"""User Repository.

Data access for accounts and password reset tokens.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AdminLog, PasswordResetToken, User
from ..utils import escape_like
from .base import paginate


class UserRepository:
    """Repository for User data access operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: int) -> User | None:
        return await self.db.get(User, user_id)

    async def find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def name_taken(self, name: str, exclude_user_id: int | None = None) -> bool:
        query = select(User.id).where(func.lower(User.name) == name.strip().lower())
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        return (await self.db.execute(query.limit(1))).first() is not None

    async def email_taken(self, email: str, exclude_user_id: int | None = None) -> bool:
        query = select(User.id).where(func.lower(User.email) == email.strip().lower())
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        return (await self.db.execute(query.limit(1))).first() is not None

    async def create(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def list(
        self,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20
    ) -> tuple[list[User], int]:
        """List users, optionally filtered by a name/email search term."""
        query = select(User)

        if search:
            pattern = f"%{escape_like(search.strip())}%"
            query = query.where(
                or_(
                    User.name.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\")
                )
            )

        query = query.order_by(User.created_at.desc(), User.id.desc())
        return await paginate(self.db, query, page, page_size)

    async def count(self) -> int:
        return (await self.db.execute(select(func.count(User.id)))).scalar_one()

    async def has_admin_logs(self, user_id: int) -> bool:
        result = await self.db.execute(
            select(AdminLog.id).where(AdminLog.admin_id == user_id).limit(1)
        )
        return result.first() is not None

    async def delete(self, user_id: int) -> None:
        await self.db.execute(delete(User).where(User.id == user_id))

    # Password reset tokens

    async def add_reset_token(self, token: PasswordResetToken) -> PasswordResetToken:
        self.db.add(token)
        await self.db.flush()
        return token

    async def find_usable_reset_token(self, token: str, now: datetime) -> PasswordResetToken | None:
        """Find a reset token that is unused and not expired."""
        result = await self.db.execute(
            select(PasswordResetToken).where(
                PasswordResetToken.token == token,
                PasswordResetToken.used_at.is_(None),
                PasswordResetToken.expires_at > now
            )
        )
        return result.scalar_one_or_none()

    async def delete_reset_tokens_for_user(self, user_id: int) -> None:
        await self.db.execute(
            delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
        )

    async def purge_reset_tokens(self, now: datetime) -> int:
        """Delete expired or used reset tokens. Returns the number removed."""
        result = await self.db.execute(
            delete(PasswordResetToken).where(
                or_(
                    PasswordResetToken.expires_at <= now,
                    PasswordResetToken.used_at.is_not(None)
                )
            )
        )
        return result.rowcount or 0
