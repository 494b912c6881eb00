"""Household and membership schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from larder.models.enums import HouseholdRole


class HouseholdCreate(BaseModel):
    """Create a household. Blank names are rejected by the service."""

    name: str | None = Field(None, max_length=100)


class HouseholdUpdate(BaseModel):
    """Replace a household's name."""

    name: str | None = Field(None, max_length=100)


class HouseholdResponse(BaseModel):
    """Household response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime
    updated_at: datetime


class OwnershipTransfer(BaseModel):
    """Hand ownership to another member."""

    new_owner_user_id: int | None = None


class RoleChange(BaseModel):
    """Change a member's role."""

    role: HouseholdRole | None = None


class HouseholdMemberCreate(BaseModel):
    """Directly add an existing user to a household."""

    user_id: int | None = None
    role: HouseholdRole = HouseholdRole.MEMBER


class HouseholdMemberResponse(BaseModel):
    """Membership response with user and household display data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    username: str | None
    display_name: str | None
    household_id: int
    household_name: str
    role: HouseholdRole
    created_at: datetime

    @classmethod
    def from_member(cls, member) -> "HouseholdMemberResponse":
        return cls(
            id=member.id,
            user_id=member.user_id,
            username=member.user.username,
            display_name=member.user.display_name,
            household_id=member.household_id,
            household_name=member.household.name,
            role=member.role,
            created_at=member.created_at,
        )
