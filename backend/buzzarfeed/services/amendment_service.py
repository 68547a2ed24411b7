"""Amendment Service.

Stall owners request changes to a single field of their stall; the change is
applied only when an admin approves it.
"""

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import AdminAction, AmendableField, AmendmentStatus, EntityType, ErrorMessages
from ..core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..core.logging import get_logger
from ..core.metrics import workflow_decisions_total
from ..domain.state_machine import AMENDMENT_WORKFLOW
from ..domain.transformers import amendment_to_dict
from ..models import AmendmentRequest, FoodStall, User
from ..models.base import utcnow
from ..repositories import AmendmentRepository, StallRepository, UserRepository
from ..schemas.stall import StallUpdate
from ..utils import sanitize_string, split_categories
from ..utils.transaction_helpers import safe_transaction
from .admin_log_service import AdminLogService
from .cache_service import cache
from .notification_service import notifier

logger = get_logger(__name__)


def _parse_categories(value: str) -> list[str]:
    try:
        categories = split_categories(value)
    except ValueError as e:
        raise ValidationError(str(e), errors={"new_value": [str(e)]})
    if not categories:
        raise ValidationError("At least one category is required", errors={"new_value": ["Required"]})
    return categories


def _check_stall_limits(field_name: str, value: str) -> None:
    """Hold the requested value to the limits a direct stall update has."""
    try:
        StallUpdate.model_validate({field_name: value})
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid value for {field_name}",
            errors={"new_value": [error["msg"] for error in e.errors()]}
        )


class AmendmentService:
    """Service for the stall amendment workflow."""

    def __init__(self, db: AsyncSession, repository: AmendmentRepository | None = None):
        self.db = db
        self.repository = repository or AmendmentRepository(db)
        self.stalls = StallRepository(db)
        self.admin_logs = AdminLogService(db)

    async def _get(self, amendment_id: int, for_update: bool = False) -> AmendmentRequest:
        amendment = await self.repository.find_by_id(amendment_id, for_update=for_update)
        if not amendment:
            raise NotFoundError(ErrorMessages.AMENDMENT_NOT_FOUND)
        return amendment

    async def _get_stall(self, stall_id: int) -> FoodStall:
        stall = await self.stalls.find_by_id(stall_id, with_relations=False)
        if not stall:
            raise NotFoundError(ErrorMessages.STALL_NOT_FOUND)
        return stall

    async def _current_value(self, stall: FoodStall, field_name: str) -> str | None:
        if field_name == AmendableField.ADDRESS:
            location = await self.stalls.get_location(stall.id)
            return location.address if location else None
        if field_name == AmendableField.CATEGORIES:
            return ", ".join(stall.categories or [])
        return getattr(stall, field_name)

    async def create_amendment(
        self,
        user: User,
        stall_id: int,
        field_name: str,
        new_value: str,
        reason: str | None = None
    ) -> dict:
        """Request a change to one field of your stall.

        The current value is captured as ``old_value`` for the admin's review.
        """
        if field_name not in AmendableField.ALL_FIELDS:
            raise ValidationError(
                "Invalid field",
                errors={"field_name": [f"Must be one of: {', '.join(AmendableField.ALL_FIELDS)}"]}
            )

        stall = await self._get_stall(stall_id)
        if stall.owner_id != user.id:
            raise PermissionDeniedError("You can only request changes to your own stalls")

        new_value = sanitize_string(new_value)
        if field_name == AmendableField.CATEGORIES:
            new_value = ", ".join(_parse_categories(new_value))
        else:
            _check_stall_limits(field_name, new_value)

        old_value = await self._current_value(stall, field_name)

        async with safe_transaction(self.db):
            amendment = await self.repository.create(
                AmendmentRequest(
                    stall_id=stall.id,
                    user_id=user.id,
                    field_name=field_name,
                    old_value=old_value,
                    new_value=new_value,
                    reason=sanitize_string(reason) or None,
                    status=AmendmentStatus.PENDING
                )
            )

        logger.info(
            "Amendment requested",
            extra={'amendment_id': amendment.id, 'stall_id': stall.id, 'field_name': field_name}
        )
        return amendment_to_dict(amendment, stall.name)

    async def list_amendments(
        self,
        viewer: User,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20
    ) -> tuple[list[dict], int]:
        rows, total = await self.repository.list(
            user_id=None if viewer.is_admin else viewer.id,
            status=status,
            page=page,
            page_size=page_size
        )
        return [amendment_to_dict(amendment, stall_name) for amendment, stall_name in rows], total

    async def get_amendment(self, viewer: User, amendment_id: int) -> dict:
        amendment = await self._get(amendment_id)
        if not viewer.is_admin and amendment.user_id != viewer.id:
            raise PermissionDeniedError("You do not have permission to view this amendment")
        stall = await self.stalls.find_by_id(amendment.stall_id, with_relations=False)
        return amendment_to_dict(amendment, stall.name if stall else None)

    async def approve(
        self,
        admin: User,
        amendment_id: int,
        admin_notes: str | None = None,
        ip_address: str | None = None
    ) -> dict:
        """Apply the requested change and mark the amendment approved."""
        async with safe_transaction(self.db):
            amendment = await self._get(amendment_id, for_update=True)
            await AMENDMENT_WORKFLOW.apply_transition(self.repository, amendment, AmendmentStatus.APPROVED)
            stall = await self._get_stall(amendment.stall_id)

            if amendment.field_name == AmendableField.ADDRESS:
                await self.stalls.set_location(stall.id, amendment.new_value)
            elif amendment.field_name == AmendableField.CATEGORIES:
                stall.categories = _parse_categories(amendment.new_value)
            else:
                setattr(stall, amendment.field_name, amendment.new_value)

            amendment.admin_notes = admin_notes
            amendment.reviewed_by = admin.id
            amendment.reviewed_at = utcnow()

            await self.admin_logs.log_action(
                admin.id,
                EntityType.AMENDMENT,
                amendment.id,
                AdminAction.APPROVE_AMENDMENT,
                f"Approved {amendment.field_name} change for stall: {stall.name}",
                ip_address
            )

        await cache.invalidate_stall(stall.id)
        workflow_decisions_total.labels(workflow="amendment", decision="approved").inc()
        logger.info(
            "Amendment approved",
            extra={'amendment_id': amendment.id, 'stall_id': stall.id, 'admin_id': admin.id}
        )

        await self._notify(amendment, stall.name, approved=True)
        return amendment_to_dict(amendment, stall.name)

    async def reject(
        self,
        admin: User,
        amendment_id: int,
        admin_notes: str | None = None,
        ip_address: str | None = None
    ) -> dict:
        async with safe_transaction(self.db):
            amendment = await self._get(amendment_id, for_update=True)
            await AMENDMENT_WORKFLOW.apply_transition(self.repository, amendment, AmendmentStatus.REJECTED)
            stall = await self._get_stall(amendment.stall_id)

            amendment.admin_notes = admin_notes
            amendment.reviewed_by = admin.id
            amendment.reviewed_at = utcnow()

            await self.admin_logs.log_action(
                admin.id,
                EntityType.AMENDMENT,
                amendment.id,
                AdminAction.REJECT_AMENDMENT,
                f"Rejected {amendment.field_name} change for stall: {stall.name}",
                ip_address
            )

        workflow_decisions_total.labels(workflow="amendment", decision="rejected").inc()
        logger.info(
            "Amendment rejected",
            extra={'amendment_id': amendment.id, 'admin_id': admin.id}
        )

        await self._notify(amendment, stall.name, approved=False)
        return amendment_to_dict(amendment, stall.name)

    async def _notify(self, amendment: AmendmentRequest, stall_name: str, approved: bool) -> None:
        owner = await UserRepository(self.db).find_by_id(amendment.user_id)
        if owner:
            await notifier.send_amendment_decision(
                owner.name,
                owner.email,
                stall_name,
                amendment.field_name,
                approved,
                amendment.admin_notes
            )
