"""SQLAlchemy models for stalls, their locations and menus."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..core.constants import DatabaseLimits
from ..db.database import Base
from .base import created_at_column, updated_at_column


class FoodStall(Base):
    """A vendor's food-stand listing."""

    __tablename__ = "food_stalls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(DatabaseLimits.STALL_NAME_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False, default="")
    hours = Column(String(255), nullable=True)
    logo_path = Column(String(DatabaseLimits.PATH_MAX_LENGTH), nullable=True)
    categories = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    average_rating = Column(
        Numeric(DatabaseLimits.RATING_PRECISION, DatabaseLimits.RATING_SCALE),
        nullable=False,
        default=0
    )
    total_reviews = Column(Integer, nullable=False, default=0)
    created_at = created_at_column()
    updated_at = updated_at_column()

    owner = relationship("User", lazy="raise")
    location = relationship("StallLocation", uselist=False, lazy="raise")

    def __repr__(self):
        return f"<FoodStall(id={self.id}, name={self.name}, rating={self.average_rating})>"


class StallLocation(Base):
    """Address and map coordinates of a stall."""

    __tablename__ = "stall_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    stall_id = Column(Integer, ForeignKey("food_stalls.id", ondelete="CASCADE"), nullable=False, unique=True)
    address = Column(String(DatabaseLimits.ADDRESS_MAX_LENGTH), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)


class MenuItem(Base):
    """A dish or drink offered by a stall."""

    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    stall_id = Column(Integer, ForeignKey("food_stalls.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(DatabaseLimits.STALL_NAME_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(DatabaseLimits.PRICE_PRECISION, DatabaseLimits.PRICE_SCALE), nullable=False)
    image_path = Column(String(DatabaseLimits.PATH_MAX_LENGTH), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = created_at_column()
    updated_at = updated_at_column()
