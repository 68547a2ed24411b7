"""Closure Repository.

Data access for account closure requests.
"""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import ClosureStatus
from ..models import AccountClosureRequest
from .base import claim_status, paginate


class ClosureRepository:
    """Repository for AccountClosureRequest data access operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, closure_id: int, for_update: bool = False) -> AccountClosureRequest | None:
        """Find by id.

        Args:
            for_update: If True, use SELECT FOR UPDATE and refresh the loaded row
        """
        query = select(AccountClosureRequest).where(AccountClosureRequest.id == closure_id)

        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def claim_status(self, closure_id: int, expected: str, new_status: str) -> bool:
        return await claim_status(self.db, AccountClosureRequest, closure_id, expected, new_status)

    async def find_pending_by_user(self, user_id: int) -> AccountClosureRequest | None:
        result = await self.db.execute(
            select(AccountClosureRequest)
            .where(
                AccountClosureRequest.user_id == user_id,
                AccountClosureRequest.status == ClosureStatus.PENDING
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create(self, closure: AccountClosureRequest) -> AccountClosureRequest:
        self.db.add(closure)
        await self.db.flush()
        return closure

    async def list(
        self,
        user_id: int | None = None,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20
    ) -> tuple[list[AccountClosureRequest], int]:
        query = select(AccountClosureRequest)

        if user_id is not None:
            query = query.where(AccountClosureRequest.user_id == user_id)
        if status:
            query = query.where(AccountClosureRequest.status == status)

        query = query.order_by(AccountClosureRequest.created_at.desc(), AccountClosureRequest.id.desc())
        return await paginate(self.db, query, page, page_size)

    async def detach_user(self, user_id: int) -> None:
        """Unlink a user's requests before the account row is removed."""
        await self.db.execute(
            update(AccountClosureRequest)
            .where(AccountClosureRequest.user_id == user_id)
            .values(user_id=None)
        )

    async def count_by_status(self, status: str) -> int:
        return (
            await self.db.execute(
                select(func.count(AccountClosureRequest.id)).where(AccountClosureRequest.status == status)
            )
        ).scalar_one()
