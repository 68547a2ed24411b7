"""Repository Layer.

Data access layer following Repository Pattern.
Separates data access logic from business logic.
"""

from .admin_log_repository import AdminLogRepository
from .amendment_repository import AmendmentRepository
from .application_repository import ApplicationRepository
from .closure_repository import ClosureRepository
from .report_repository import ReportRepository
from .review_repository import ReviewRepository
from .stall_repository import StallRepository
from .user_repository import UserRepository

__all__ = [
    'AdminLogRepository',
    'AmendmentRepository',
    'ApplicationRepository',
    'ClosureRepository',
    'ReportRepository',
    'ReviewRepository',
    'StallRepository',
    'UserRepository',
]
