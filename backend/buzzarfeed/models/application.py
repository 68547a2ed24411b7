"""SQLAlchemy model for stall applications."""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text, text

from ..core.constants import ApplicationStatus, DatabaseLimits
from ..db.database import Base
from .base import created_at_column, updated_at_column


class Application(Base):
    """A vendor's request to register a new stall."""

    __tablename__ = "applications"

    __table_args__ = (
        Index(
            "unique_pending_application_per_user",
            "user_id",
            unique=True,
            postgresql_where=text(f"status = '{ApplicationStatus.PENDING}'"),
            sqlite_where=text(f"status = '{ApplicationStatus.PENDING}'")
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    stall_name = Column(String(DatabaseLimits.STALL_NAME_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String(DatabaseLimits.ADDRESS_MAX_LENGTH), nullable=True)
    map_x = Column(Float, nullable=True)
    map_y = Column(Float, nullable=True)
    categories = Column(JSON, nullable=False, default=list)
    bir_path = Column(String(DatabaseLimits.PATH_MAX_LENGTH), nullable=True)
    permit_path = Column(String(DatabaseLimits.PATH_MAX_LENGTH), nullable=True)
    dti_sec_path = Column(String(DatabaseLimits.PATH_MAX_LENGTH), nullable=True)
    logo_path = Column(String(DatabaseLimits.PATH_MAX_LENGTH), nullable=True)
    status = Column(String(20), nullable=False, default=ApplicationStatus.PENDING, index=True)
    review_notes = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    stall_id = Column(Integer, ForeignKey("food_stalls.id", ondelete="SET NULL"), nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    def __repr__(self):
        return f"<Application(id={self.id}, stall_name={self.stall_name}, status={self.status})>"
