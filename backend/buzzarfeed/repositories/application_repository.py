"""Application Repository.

Data access for stall applications.
"""

from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import ApplicationStatus
from ..models import Application, User
from .base import claim_status, paginate


class ApplicationRepository:
    """Repository for Application data access operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, application_id: int, for_update: bool = False) -> Application | None:
        """Find by id.

        Args:
            for_update: If True, use SELECT FOR UPDATE and refresh the loaded row
        """
        query = select(Application).where(Application.id == application_id)

        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def claim_status(self, application_id: int, expected: str, new_status: str) -> bool:
        return await claim_status(self.db, Application, application_id, expected, new_status)

    async def find_pending_by_user(self, user_id: int) -> Application | None:
        result = await self.db.execute(
            select(Application)
            .where(
                Application.user_id == user_id,
                Application.status == ApplicationStatus.PENDING
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create(self, application: Application) -> Application:
        self.db.add(application)
        await self.db.flush()
        return application

    async def list(
        self,
        user_id: int | None = None,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20
    ):
        """List applications newest first.

        Row shape: (Application, applicant_name)
        """
        query = select(Application, User.name).join(User, User.id == Application.user_id)

        if user_id is not None:
            query = query.where(Application.user_id == user_id)
        if status:
            query = query.where(Application.status == status)

        query = query.order_by(Application.created_at.desc(), Application.id.desc())
        return await paginate(self.db, query, page, page_size, scalars=False)

    async def count_by_status(self, status: str) -> int:
        return (
            await self.db.execute(
                select(func.count(Application.id)).where(Application.status == status)
            )
        ).scalar_one()

    async def delete_by_user(self, user_id: int) -> None:
        await self.db.execute(delete(Application).where(Application.user_id == user_id))
