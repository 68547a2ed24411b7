"""Admin Service.

Dashboard counters and promotion of existing accounts to admin.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import (
    AmendmentStatus,
    ApplicationStatus,
    ClosureStatus,
    ErrorMessages,
    UserType,
)
from ..core.exceptions import NotFoundError, ValidationError
from ..core.logging import get_logger
from ..models import User
from ..repositories import (
    AmendmentRepository,
    ApplicationRepository,
    ClosureRepository,
    ReportRepository,
    ReviewRepository,
    StallRepository,
    UserRepository,
)
from ..utils.transaction_helpers import safe_transaction
from .admin_log_service import AdminLogService
from .cache_service import cache

logger = get_logger(__name__)


class AdminService:
    """Service for the admin console."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserRepository(db)
        self.stalls = StallRepository(db)
        self.applications = ApplicationRepository(db)
        self.admin_logs = AdminLogService(db)

    async def get_dashboard_stats(self) -> dict:
        return {
            "totalUsers": await self.users.count(),
            "totalStalls": await self.stalls.count(active_only=True),
            "totalReviews": await ReviewRepository(self.db).count(),
            "pendingApplications": await self.applications.count_by_status(ApplicationStatus.PENDING),
            "pendingAmendments": await AmendmentRepository(self.db).count_by_status(AmendmentStatus.PENDING),
            "pendingClosures": await ClosureRepository(self.db).count_by_status(ClosureStatus.PENDING),
            "pendingReports": await ReportRepository(self.db).count_pending(),
        }

    async def convert_to_admin(self, admin: User, email: str, ip_address: str | None = None) -> User:
        """Promote an account to admin.

        Admins do not own stalls: a stall owner's stalls (with everything
        attached) and applications are removed in the same transaction.

        Raises:
            NotFoundError: No account with that email
            ValidationError: The account is already an admin
        """
        user = await self.users.find_by_email(email)
        if not user:
            raise NotFoundError(ErrorMessages.USER_NOT_FOUND)
        if user.is_admin:
            raise ValidationError("User is already an admin")

        owned_stall_ids = await self.stalls.ids_by_owner(user.id)

        async with safe_transaction(self.db):
            if owned_stall_ids:
                await self.stalls.delete_stalls(owned_stall_ids)
            await self.applications.delete_by_user(user.id)

            user.user_type = UserType.ADMIN
            await self.admin_logs.log_user_conversion(admin.id, user, ip_address)

        for stall_id in owned_stall_ids:
            await cache.invalidate_stall(stall_id)

        logger.info(
            "User converted to admin",
            extra={'user_id': user.id, 'admin_id': admin.id, 'stalls_removed': len(owned_stall_ids)}
        )
        return user
