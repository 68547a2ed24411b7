"""Amendment Repository.

Data access for stall amendment requests.
"""

from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AmendmentRequest, FoodStall
from .base import claim_status, paginate


class AmendmentRepository:
    """Repository for AmendmentRequest data access operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, amendment_id: int, for_update: bool = False) -> AmendmentRequest | None:
        """Find by id.

        Args:
            for_update: If True, use SELECT FOR UPDATE and refresh the loaded row
        """
        query = select(AmendmentRequest).where(AmendmentRequest.id == amendment_id)

        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def claim_status(self, amendment_id: int, expected: str, new_status: str) -> bool:
        return await claim_status(self.db, AmendmentRequest, amendment_id, expected, new_status)

    async def create(self, amendment: AmendmentRequest) -> AmendmentRequest:
        self.db.add(amendment)
        await self.db.flush()
        return amendment

    async def list(
        self,
        user_id: int | None = None,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20
    ):
        """List amendments newest first.

        Row shape: (AmendmentRequest, stall_name)
        """
        query = select(AmendmentRequest, FoodStall.name).join(
            FoodStall, FoodStall.id == AmendmentRequest.stall_id
        )

        if user_id is not None:
            query = query.where(AmendmentRequest.user_id == user_id)
        if status:
            query = query.where(AmendmentRequest.status == status)

        query = query.order_by(AmendmentRequest.created_at.desc(), AmendmentRequest.id.desc())
        return await paginate(self.db, query, page, page_size, scalars=False)

    async def count_by_status(self, status: str) -> int:
        return (
            await self.db.execute(
                select(func.count(AmendmentRequest.id)).where(AmendmentRequest.status == status)
            )
        ).scalar_one()

    async def delete_by_user(self, user_id: int) -> None:
        await self.db.execute(delete(AmendmentRequest).where(AmendmentRequest.user_id == user_id))
