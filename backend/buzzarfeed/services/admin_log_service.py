"""Admin Log Service.

Audit trail of administrative actions. Entries are written in the caller's
session so they commit (or roll back) together with the action they record.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import AdminAction, EntityType
from ..core.logging import get_logger
from ..domain.transformers import admin_log_to_dict
from ..models import AdminLog
from ..repositories import AdminLogRepository

logger = get_logger(__name__)


class AdminLogService:
    """Records and lists admin actions."""

    def __init__(self, db: AsyncSession, repository: AdminLogRepository | None = None):
        self.db = db
        self.repository = repository or AdminLogRepository(db)

    async def log_action(
        self,
        admin_id: int,
        entity_type: str,
        entity_id: int | None,
        action: str,
        details: str | None = None,
        ip_address: str | None = None
    ) -> AdminLog:
        log = await self.repository.create(
            AdminLog(
                admin_id=admin_id,
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                details=details,
                ip_address=ip_address
            )
        )

        logger.info(
            "Admin action recorded",
            extra={
                'admin_id': admin_id,
                'entity_type': entity_type,
                'entity_id': entity_id,
                'action': action
            }
        )
        return log

    async def log_application_approval(
        self, admin_id: int, application, review_notes: str | None, ip_address: str | None = None
    ) -> AdminLog:
        details = f"Approved stall application: {application.stall_name}"
        if review_notes:
            details += f" | Review Notes: {review_notes}"
        return await self.log_action(
            admin_id, EntityType.APPLICATION, application.id, AdminAction.APPROVE, details, ip_address
        )

    async def log_application_decline(
        self, admin_id: int, application, reason: str, ip_address: str | None = None
    ) -> AdminLog:
        return await self.log_action(
            admin_id,
            EntityType.APPLICATION,
            application.id,
            AdminAction.DECLINE,
            f"Declined stall application: {application.stall_name} | Reason: {reason}",
            ip_address
        )

    async def log_application_archive(
        self, admin_id: int, application, ip_address: str | None = None
    ) -> AdminLog:
        return await self.log_action(
            admin_id,
            EntityType.APPLICATION,
            application.id,
            AdminAction.ARCHIVE,
            f"Archived stall application: {application.stall_name}",
            ip_address
        )

    async def log_review_deletion(
        self, admin_id: int, review_id: int, stall_name: str, reason: str, ip_address: str | None = None
    ) -> AdminLog:
        return await self.log_action(
            admin_id,
            EntityType.REVIEW,
            review_id,
            AdminAction.DELETE_REVIEW,
            f"Deleted review for stall: {stall_name} | Reason: {reason}",
            ip_address
        )

    async def log_user_conversion(self, admin_id: int, user, ip_address: str | None = None) -> AdminLog:
        return await self.log_action(
            admin_id,
            EntityType.USER,
            user.id,
            AdminAction.CONVERT_TO_ADMIN,
            f"Converted user to admin: {user.name} ({user.email})",
            ip_address
        )

    async def get_logs(
        self,
        admin_id: int | None = None,
        entity_type: str | None = None,
        page: int = 1,
        page_size: int = 50
    ) -> tuple[list[dict], int]:
        rows, total = await self.repository.list(
            admin_id=admin_id, entity_type=entity_type, page=page, page_size=page_size
        )
        return [admin_log_to_dict(log, admin_name) for log, admin_name in rows], total
