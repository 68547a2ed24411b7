"""SQLAlchemy models for accounts and password resets."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from ..core.constants import DatabaseLimits, UserType
from ..db.database import Base
from .base import created_at_column, updated_at_column


class User(Base):
    """Registered account (food enthusiast, stall owner or admin)."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(DatabaseLimits.NAME_MAX_LENGTH), nullable=False, unique=True)
    email = Column(String(DatabaseLimits.EMAIL_MAX_LENGTH), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    user_type = Column(String(20), nullable=False, default=UserType.FOOD_ENTHUSIAST)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, type={self.user_type})>"


class PasswordResetToken(Base):
    """Single-use password reset token."""

    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(64), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(255), nullable=True)
    created_at = created_at_column()

    def __repr__(self):
        return f"<PasswordResetToken(id={self.id}, user_id={self.user_id}, used={self.used_at is not None})>"
