"""Models package.

Export all models for easy importing
"""

from .admin_log import AdminLog
from .amendment import AmendmentRequest
from .application import Application
from .closure import AccountClosureRequest
from .review import Review, ReviewModeration, ReviewReaction, ReviewReport
from .stall import FoodStall, MenuItem, StallLocation
from .user import PasswordResetToken, User

__all__ = [
    "AccountClosureRequest",
    "AdminLog",
    "AmendmentRequest",
    "Application",
    "FoodStall",
    "MenuItem",
    "PasswordResetToken",
    "Review",
    "ReviewModeration",
    "ReviewReaction",
    "ReviewReport",
    "StallLocation",
    "User",
]
