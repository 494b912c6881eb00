"""Household and membership models."""

from sqlalchemy import Column, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from larder.database import Base
from larder.models.enums import HouseholdRole
from larder.models.mixins import TimestampMixin


class Household(Base, TimestampMixin):
    """A shared group of users owning storage locations."""

    __tablename__ = "households"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)

    # Relationships
    members = relationship("HouseholdMember", back_populates="household", cascade="all, delete-orphan")
    invitations = relationship(
        "HouseholdInvitation", back_populates="household", cascade="all, delete-orphan"
    )
    locations = relationship("Location", back_populates="household", cascade="all, delete-orphan")


class HouseholdMember(Base, TimestampMixin):
    """Membership of a user in a household with a role."""

    __tablename__ = "household_members"
    __table_args__ = (
        UniqueConstraint("household_id", "user_id", name="uq_household_member_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    household_id = Column(Integer, ForeignKey("households.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(Enum(HouseholdRole, native_enum=False, length=20), nullable=False)

    # Relationships
    household = relationship("Household", back_populates="members")
    user = relationship("User", backref="memberships")
