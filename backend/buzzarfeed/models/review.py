"""SQLAlchemy models for reviews, reactions, reports and moderation history."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from ..core.constants import DatabaseLimits, ReportStatus
from ..db.database import Base
from .base import created_at_column, updated_at_column


class Review(Base):
    """A user's rating and comment for a stall (one per user per stall)."""

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint('stall_id', 'user_id', name='uq_review_stall_user'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    stall_id = Column(Integer, ForeignKey("food_stalls.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(255), nullable=True)
    comment = Column(Text, nullable=False)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    is_hidden = Column(Boolean, nullable=False, default=False)
    created_at = created_at_column()
    updated_at = updated_at_column()

    def __repr__(self):
        return f"<Review(id={self.id}, stall={self.stall_id}, rating={self.rating}, hidden={self.is_hidden})>"


class ReviewReaction(Base):
    """Like or dislike on a review (one per user per review)."""

    __tablename__ = "review_reactions"
    __table_args__ = (
        UniqueConstraint('review_id', 'user_id', name='uq_reaction_review_user'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reaction_type = Column(String(10), nullable=False)
    created_at = created_at_column()


class ReviewReport(Base):
    """A user's report that a review is inappropriate."""

    __tablename__ = "review_reports"
    __table_args__ = (
        UniqueConstraint('review_id', 'reporter_id', name='uq_report_review_reporter'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    reporter_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reason = Column(String(255), nullable=False)
    details = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ReportStatus.PENDING, index=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    review_notes = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()


class ReviewModeration(Base):
    """Moderation history. review_id is not a foreign key so entries outlive deleted reviews."""

    __tablename__ = "review_moderations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    review_id = Column(Integer, nullable=False, index=True)
    stall_id = Column(Integer, nullable=True)
    moderator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(20), nullable=False)
    reason = Column(String(DatabaseLimits.REASON_MAX_LENGTH), nullable=True)
    is_hidden = Column(Boolean, nullable=False, default=False)
    created_at = created_at_column()
