"""SQLAlchemy model for the admin audit trail."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text

from ..db.database import Base
from .base import created_at_column


class AdminLog(Base):
    """One administrative action (approve, decline, delete review, ...)."""

    __tablename__ = "admin_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(Integer, nullable=True)
    action = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = created_at_column()

    def __repr__(self):
        return f"<AdminLog(id={self.id}, admin={self.admin_id}, {self.entity_type}:{self.entity_id} {self.action})>"
