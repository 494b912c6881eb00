"""Storage location model."""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from larder.database import Base
from larder.models.mixins import TimestampMixin


class Location(Base, TimestampMixin):
    """Named storage spot (fridge, pantry shelf, ...) inside a household."""

    __tablename__ = "locations"
    __table_args__ = (
        UniqueConstraint("household_id", "name", name="uq_location_household_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    household_id = Column(Integer, ForeignKey("households.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)

    # Relationships
    household = relationship("Household", back_populates="locations")
    # No delete cascade: removing a location that still holds items must fail
    pantry_items = relationship("PantryItem", back_populates="location")
