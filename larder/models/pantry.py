"""Pantry item model for tracking stocked products per location."""

from sqlalchemy import Column, Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from larder.database import Base
from larder.models.mixins import TimestampMixin


class PantryItem(Base, TimestampMixin):
    """Quantity of a product stored at a location.

    Rows are consolidated on (location, product, expiration_date); a missing
    expiration date is its own bucket.
    """

    __tablename__ = "pantry_items"
    __table_args__ = (
        UniqueConstraint(
            "location_id", "product_id", "expiration_date", name="uq_pantry_item_identity"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    expiration_date = Column(Date, nullable=True, index=True)
    quantity = Column(Integer, nullable=True)
    unit_of_measure = Column(String(50), nullable=True)
    notes = Column(String(500), nullable=True)

    # Relationships
    product = relationship("Product", backref="pantry_items")
    location = relationship("Location", back_populates="pantry_items")

    @property
    def household_id(self) -> int:
        return self.location.household_id
