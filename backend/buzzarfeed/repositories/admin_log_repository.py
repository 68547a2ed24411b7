"""Admin Log Repository.

Data access for the admin audit trail.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AdminLog, User
from .base import paginate


class AdminLogRepository:
    """Repository for AdminLog data access operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, log: AdminLog) -> AdminLog:
        self.db.add(log)
        await self.db.flush()
        return log

    async def list(
        self,
        admin_id: int | None = None,
        entity_type: str | None = None,
        page: int = 1,
        page_size: int = 50
    ):
        """List log entries newest first.

        Row shape: (AdminLog, admin_name)
        """
        query = select(AdminLog, User.name).outerjoin(User, User.id == AdminLog.admin_id)

        if admin_id is not None:
            query = query.where(AdminLog.admin_id == admin_id)
        if entity_type:
            query = query.where(AdminLog.entity_type == entity_type)

        query = query.order_by(AdminLog.created_at.desc(), AdminLog.id.desc())
        return await paginate(self.db, query, page, page_size, scalars=False)
