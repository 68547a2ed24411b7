"""SQLAlchemy model for stall amendment requests."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from ..core.constants import AmendmentStatus
from ..db.database import Base
from .base import created_at_column, updated_at_column


class AmendmentRequest(Base):
    """A stall owner's request to change one field of their stall."""

    __tablename__ = "amendment_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    stall_id = Column(Integer, ForeignKey("food_stalls.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    field_name = Column(String(50), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=AmendmentStatus.PENDING, index=True)
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    def __repr__(self):
        return f"<AmendmentRequest(id={self.id}, stall={self.stall_id}, field={self.field_name}, status={self.status})>"
