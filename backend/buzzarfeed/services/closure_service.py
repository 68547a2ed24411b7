"""Closure Service.

Account closure requests. A user asks for their account to be removed; an
admin approval runs the account deletion cascade. The request row survives
with a snapshot of the user's name and email.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import AdminAction, ClosureStatus, EntityType, ErrorMessages
from ..core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..core.logging import get_logger
from ..core.metrics import workflow_decisions_total
from ..domain.state_machine import CLOSURE_WORKFLOW
from ..domain.transformers import closure_to_dict
from ..models import AccountClosureRequest, User
from ..models.base import utcnow
from ..repositories import ClosureRepository, StallRepository, UserRepository
from ..utils import sanitize_string
from ..utils.transaction_helpers import safe_transaction
from .account_service import AccountDeletionService
from .admin_log_service import AdminLogService
from .cache_service import cache
from .notification_service import notifier

logger = get_logger(__name__)


class ClosureService:
    """Service for the account closure workflow."""

    def __init__(self, db: AsyncSession, repository: ClosureRepository | None = None):
        self.db = db
        self.repository = repository or ClosureRepository(db)
        self.stalls = StallRepository(db)
        self.admin_logs = AdminLogService(db)

    async def _get(self, closure_id: int, for_update: bool = False) -> AccountClosureRequest:
        closure = await self.repository.find_by_id(closure_id, for_update=for_update)
        if not closure:
            raise NotFoundError(ErrorMessages.CLOSURE_NOT_FOUND)
        return closure

    async def _ensure_closable(self, user: User) -> None:
        if user.is_admin:
            raise ValidationError("Admin accounts cannot be closed through a closure request")
        if await self.stalls.ids_by_owner(user.id, active_only=True):
            raise ValidationError(ErrorMessages.ACTIVE_STALLS_BLOCK_CLOSURE)

    async def create_closure(self, user: User, reason: str | None = None) -> dict:
        """Ask for your account to be closed.

        Raises:
            ConflictError: A pending request already exists
            ValidationError: Admin account, or the user still owns active stalls
        """
        if await self.repository.find_pending_by_user(user.id):
            raise ConflictError(ErrorMessages.PENDING_CLOSURE_EXISTS)

        await self._ensure_closable(user)

        try:
            async with safe_transaction(self.db):
                closure = await self.repository.create(
                    AccountClosureRequest(
                        user_id=user.id,
                        user_name=user.name,
                        user_email=user.email,
                        reason=sanitize_string(reason) or None,
                        status=ClosureStatus.PENDING
                    )
                )
        except IntegrityError:
            # unique_pending_closure_per_user: a concurrent request got there first
            raise ConflictError(ErrorMessages.PENDING_CLOSURE_EXISTS)

        logger.info("Closure requested", extra={'closure_id': closure.id, 'user_id': user.id})
        return closure_to_dict(closure)

    async def list_closures(
        self,
        viewer: User,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20
    ) -> tuple[list[dict], int]:
        closures, total = await self.repository.list(
            user_id=None if viewer.is_admin else viewer.id,
            status=status,
            page=page,
            page_size=page_size
        )
        return [closure_to_dict(closure) for closure in closures], total

    async def get_closure(self, viewer: User, closure_id: int) -> dict:
        closure = await self._get(closure_id)
        if not viewer.is_admin and closure.user_id != viewer.id:
            raise PermissionDeniedError("You do not have permission to view this closure request")
        return closure_to_dict(closure)

    async def approve(
        self,
        admin: User,
        closure_id: int,
        admin_notes: str | None = None,
        ip_address: str | None = None
    ) -> dict:
        """Approve a closure request and delete the account.

        The prerequisites are checked again: the user may have acquired an
        active stall since filing the request.
        """
        async with safe_transaction(self.db):
            closure = await self._get(closure_id, for_update=True)
            await CLOSURE_WORKFLOW.apply_transition(self.repository, closure, ClosureStatus.APPROVED)

            user = await UserRepository(self.db).find_by_id(closure.user_id) if closure.user_id else None
            if user is None:
                raise NotFoundError(ErrorMessages.USER_NOT_FOUND)
            await self._ensure_closable(user)

            user_id = user.id

            closure.admin_notes = admin_notes
            closure.reviewed_by = admin.id
            closure.reviewed_at = utcnow()
            closure.user_name = user.name
            closure.user_email = user.email
            await self.db.flush()

            stale_stalls = await AccountDeletionService(self.db).delete_account(user_id, source="closure")

            await self.admin_logs.log_action(
                admin.id,
                EntityType.CLOSURE,
                closure.id,
                AdminAction.APPROVE_CLOSURE,
                f"Approved account closure: {closure.user_name} ({closure.user_email})",
                ip_address
            )

        for stall_id in stale_stalls:
            await cache.invalidate_stall(stall_id)

        workflow_decisions_total.labels(workflow="closure", decision="approved").inc()
        logger.info(
            "Closure approved",
            extra={'closure_id': closure.id, 'user_id': user_id, 'admin_id': admin.id}
        )

        await notifier.send_closure_approved(closure.user_name, closure.user_email)
        return closure_to_dict(closure)

    async def reject(
        self,
        admin: User,
        closure_id: int,
        admin_notes: str | None = None,
        ip_address: str | None = None
    ) -> dict:
        async with safe_transaction(self.db):
            closure = await self._get(closure_id, for_update=True)
            await CLOSURE_WORKFLOW.apply_transition(self.repository, closure, ClosureStatus.REJECTED)

            closure.admin_notes = admin_notes
            closure.reviewed_by = admin.id
            closure.reviewed_at = utcnow()

            await self.admin_logs.log_action(
                admin.id,
                EntityType.CLOSURE,
                closure.id,
                AdminAction.REJECT_CLOSURE,
                f"Rejected account closure: {closure.user_name} ({closure.user_email})",
                ip_address
            )

        workflow_decisions_total.labels(workflow="closure", decision="rejected").inc()
        logger.info(
            "Closure rejected",
            extra={'closure_id': closure.id, 'admin_id': admin.id}
        )

        await notifier.send_closure_rejected(closure.user_name, closure.user_email, admin_notes)
        return closure_to_dict(closure)
