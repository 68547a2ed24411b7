"""SQLAlchemy model for account closure requests."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, text

from ..core.constants import ClosureStatus, DatabaseLimits
from ..db.database import Base
from .base import created_at_column, updated_at_column


class AccountClosureRequest(Base):
    """A user's request to delete their account.

    user_name and user_email are snapshots: the request row outlives the
    account once the closure is approved.
    """

    __tablename__ = "account_closure_requests"

    __table_args__ = (
        Index(
            "unique_pending_closure_per_user",
            "user_id",
            unique=True,
            postgresql_where=text(f"status = '{ClosureStatus.PENDING}'"),
            sqlite_where=text(f"status = '{ClosureStatus.PENDING}'")
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user_name = Column(String(DatabaseLimits.NAME_MAX_LENGTH), nullable=False)
    user_email = Column(String(DatabaseLimits.EMAIL_MAX_LENGTH), nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ClosureStatus.PENDING, index=True)
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()
