"""Application Service.

Stall applications: vendors submit, admins approve, reject or archive.

Approval is the one place stalls are born from the workflow. The stall row,
its location, the status flip and the applicant's promotion to stall owner
commit together, so an approved application always has exactly one stall.
"""

from pathlib import Path
from typing import Any

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import (
    ApplicationDocument,
    ApplicationStatus,
    ErrorMessages,
    UploadRules,
    UserType,
)
from ..core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StateTransitionError,
    ValidationError,
)
from ..core.logging import get_logger
from ..core.metrics import applications_submitted_total, workflow_decisions_total
from ..domain.state_machine import APPLICATION_WORKFLOW
from ..domain.transformers import application_to_dict
from ..models import Application, FoodStall, User
from ..models.base import utcnow
from ..repositories import ApplicationRepository, StallRepository, UserRepository
from ..utils.transaction_helpers import safe_transaction
from .admin_log_service import AdminLogService
from .cache_service import cache, categories_key
from .file_storage_service import file_storage
from .notification_service import notifier

logger = get_logger(__name__)

APPLICATION_FIELDS = (
    "stall_name",
    "description",
    "location",
    "map_x",
    "map_y",
    "categories",
)


def _document_folder(application_id: int) -> str:
    return f"{UploadRules.APPLICATIONS_FOLDER}/{application_id}"


class ApplicationService:
    """Service for the stall application workflow."""

    def __init__(self, db: AsyncSession, repository: ApplicationRepository | None = None):
        self.db = db
        self.repository = repository or ApplicationRepository(db)
        self.users = UserRepository(db)
        self.admin_logs = AdminLogService(db)

    async def _get(self, application_id: int, for_update: bool = False) -> Application:
        application = await self.repository.find_by_id(application_id, for_update=for_update)
        if not application:
            raise NotFoundError(ErrorMessages.APPLICATION_NOT_FOUND)
        return application

    async def _get_editable(self, user: User, application_id: int) -> Application:
        application = await self._get(application_id)
        if application.user_id != user.id:
            raise PermissionDeniedError("You can only edit your own applications")
        if application.status != ApplicationStatus.PENDING:
            raise StateTransitionError("Only pending applications can be edited")
        return application

    async def _format(self, application: Application) -> dict:
        applicant = await self.users.find_by_id(application.user_id)
        return application_to_dict(application, applicant.name if applicant else None)

    async def create_application(self, user: User, data: dict[str, Any]) -> dict:
        """Submit a new application.

        Raises:
            ConflictError: The user already has a pending application
        """
        if await self.repository.find_pending_by_user(user.id):
            raise ConflictError(ErrorMessages.PENDING_APPLICATION_EXISTS)

        try:
            async with safe_transaction(self.db):
                application = await self.repository.create(
                    Application(
                        user_id=user.id,
                        status=ApplicationStatus.PENDING,
                        **{field: data.get(field) for field in APPLICATION_FIELDS}
                    )
                )
        except IntegrityError:
            # unique_pending_application_per_user
            raise ConflictError(ErrorMessages.PENDING_APPLICATION_EXISTS)

        applications_submitted_total.inc()
        logger.info(
            "Application submitted",
            extra={'application_id': application.id, 'user_id': user.id}
        )
        return application_to_dict(application, user.name)

    async def list_applications(
        self,
        viewer: User,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20
    ) -> tuple[list[dict], int]:
        """Admins see every application; everyone else only their own."""
        rows, total = await self.repository.list(
            user_id=None if viewer.is_admin else viewer.id,
            status=status,
            page=page,
            page_size=page_size
        )
        return [application_to_dict(application, name) for application, name in rows], total

    async def get_application(self, viewer: User, application_id: int) -> dict:
        return await self._format(await self._get_visible(viewer, application_id))

    async def _get_visible(self, viewer: User, application_id: int) -> Application:
        application = await self._get(application_id)
        if not viewer.is_admin and application.user_id != viewer.id:
            raise PermissionDeniedError("You do not have permission to view this application")
        return application

    async def update_application(self, user: User, application_id: int, changes: dict[str, Any]) -> dict:
        """Edit your own application while it is still pending."""
        application = await self._get_editable(user, application_id)

        async with safe_transaction(self.db):
            for field in APPLICATION_FIELDS:
                if changes.get(field) is not None:
                    setattr(application, field, changes[field])

        logger.info("Application updated", extra={'application_id': application.id})
        return application_to_dict(application, user.name)

    async def upload_document(
        self,
        user: User,
        application_id: int,
        document: str,
        upload: UploadFile
    ) -> dict:
        """Attach a file to your pending application, replacing any earlier one.

        BIR, permit and DTI/SEC documents accept JPEG, PNG or PDF; the logo
        accepts JPEG or PNG.
        """
        if document not in ApplicationDocument.ALL_DOCUMENTS:
            raise ValidationError(
                "Invalid document",
                errors={"document": [f"Must be one of: {', '.join(ApplicationDocument.ALL_DOCUMENTS)}"]}
            )

        application = await self._get_editable(user, application_id)
        column = ApplicationDocument.COLUMNS[document]
        allowed_types = UploadRules.IMAGE_TYPES if document == ApplicationDocument.LOGO else UploadRules.DOCUMENT_TYPES

        path = await file_storage.save(upload, _document_folder(application.id), document, allowed_types)
        previous = getattr(application, column)

        try:
            async with safe_transaction(self.db):
                setattr(application, column, path)
        except Exception:
            await file_storage.delete(path)
            raise

        await file_storage.delete(previous)
        logger.info(
            "Application document uploaded",
            extra={'application_id': application.id, 'document': document, 'replaced': previous is not None}
        )
        return application_to_dict(application, user.name)

    async def get_document(self, viewer: User, application_id: int, document: str) -> Path:
        """Location of an application's file, for the applicant or an admin."""
        if document not in ApplicationDocument.ALL_DOCUMENTS:
            raise NotFoundError(ErrorMessages.DOCUMENT_NOT_FOUND)
        application = await self._get_visible(viewer, application_id)
        return file_storage.locate(getattr(application, ApplicationDocument.COLUMNS[document]))

    async def approve(
        self,
        admin: User,
        application_id: int,
        review_notes: str | None = None,
        ip_address: str | None = None
    ) -> dict:
        """Approve an application and create its stall.

        Returns:
            {"application": ..., "stall_id": ...}
        """
        stalls = StallRepository(self.db)

        async with safe_transaction(self.db):
            application = await self._get(application_id, for_update=True)
            await APPLICATION_WORKFLOW.apply_transition(self.repository, application, ApplicationStatus.APPROVED)

            applicant = await self.users.find_by_id(application.user_id)
            if not applicant:
                raise NotFoundError(ErrorMessages.USER_NOT_FOUND)

            stall = await stalls.create(
                FoodStall(
                    owner_id=application.user_id,
                    name=application.stall_name,
                    description=application.description,
                    logo_path=application.logo_path,
                    categories=list(application.categories or []),
                    is_active=True
                )
            )

            if application.location:
                await stalls.set_location(
                    stall.id, application.location, application.map_x, application.map_y
                )

            application.review_notes = review_notes
            application.reviewed_by = admin.id
            application.reviewed_at = utcnow()
            application.stall_id = stall.id

            if applicant.user_type == UserType.FOOD_ENTHUSIAST:
                applicant.user_type = UserType.FOOD_STALL_OWNER

            await self.admin_logs.log_application_approval(admin.id, application, review_notes, ip_address)

        await cache.delete(categories_key())
        workflow_decisions_total.labels(workflow="application", decision="approved").inc()
        logger.info(
            "Application approved",
            extra={'application_id': application.id, 'stall_id': stall.id, 'admin_id': admin.id}
        )

        await notifier.send_application_approved(
            applicant.name, applicant.email, application.stall_name, review_notes
        )

        return {
            "application": application_to_dict(application, applicant.name),
            "stall_id": stall.id,
        }

    async def reject(
        self,
        admin: User,
        application_id: int,
        reason: str,
        ip_address: str | None = None
    ) -> dict:
        """Decline an application. The row is kept with status ``rejected``."""
        async with safe_transaction(self.db):
            application = await self._get(application_id, for_update=True)
            await APPLICATION_WORKFLOW.apply_transition(self.repository, application, ApplicationStatus.REJECTED)

            application.review_notes = reason
            application.reviewed_by = admin.id
            application.reviewed_at = utcnow()
            await self.admin_logs.log_application_decline(admin.id, application, reason, ip_address)

        applicant = await self.users.find_by_id(application.user_id)

        workflow_decisions_total.labels(workflow="application", decision="rejected").inc()
        logger.info(
            "Application rejected",
            extra={'application_id': application.id, 'admin_id': admin.id}
        )

        if applicant:
            await notifier.send_application_declined(
                applicant.name, applicant.email, application.stall_name, reason
            )

        return application_to_dict(application, applicant.name if applicant else None)

    async def archive(self, admin: User, application_id: int, ip_address: str | None = None) -> dict:
        """Archive an application and delete its uploaded files.

        The logo of an approved application is kept: the stall created from it
        still points at that file.
        """
        async with safe_transaction(self.db):
            application = await self._get(application_id, for_update=True)
            await APPLICATION_WORKFLOW.apply_transition(self.repository, application, ApplicationStatus.ARCHIVED)

            documents = [ApplicationDocument.BIR, ApplicationDocument.PERMIT, ApplicationDocument.DTI_SEC]
            if application.stall_id is None:
                documents.append(ApplicationDocument.LOGO)

            stored_files = []
            for document in documents:
                column = ApplicationDocument.COLUMNS[document]
                stored_files.append(getattr(application, column))
                setattr(application, column, None)

            await self.admin_logs.log_application_archive(admin.id, application, ip_address)

        await file_storage.delete(*stored_files)
        workflow_decisions_total.labels(workflow="application", decision="archived").inc()
        logger.info(
            "Application archived",
            extra={'application_id': application.id, 'admin_id': admin.id}
        )
        return await self._format(application)
