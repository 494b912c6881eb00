"""Enums for model fields."""

from enum import Enum


class UserRole(str, Enum):
    """Application-wide user role."""

    USER = "USER"
    ADMIN = "ADMIN"


class HouseholdRole(str, Enum):
    """Role of a member inside a household, ordered OWNER > ADMIN > MEMBER."""

    MEMBER = "MEMBER"
    ADMIN = "ADMIN"
    OWNER = "OWNER"

    @property
    def rank(self) -> int:
        return _HOUSEHOLD_ROLE_RANK[self]

    def at_least(self, other: "HouseholdRole") -> bool:
        """Check if this role is the same as or above ``other``."""
        return self.rank >= other.rank

    def can_manage(self) -> bool:
        """Check if this role may administer the household."""
        return self.at_least(HouseholdRole.ADMIN)


_HOUSEHOLD_ROLE_RANK = {
    HouseholdRole.MEMBER: 0,
    HouseholdRole.ADMIN: 1,
    HouseholdRole.OWNER: 2,
}


class InvitationStatus(str, Enum):
    """Lifecycle state of a household invitation."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


class ProductDataSource(str, Enum):
    """Where a product's catalog data came from."""

    MANUAL = "MANUAL"
    OPEN_FOOD_FACTS = "OPEN_FOOD_FACTS"
    HYBRID = "HYBRID"  # API data later edited by an administrator
