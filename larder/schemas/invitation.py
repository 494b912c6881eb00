"""Household invitation schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from larder.models.enums import HouseholdRole, InvitationStatus


class InvitationCreate(BaseModel):
    """Invite an account (by id) or an email address to a household."""

    invited_user_id: int | None = None
    invited_user_email: str | None = Field(None, max_length=255)
    proposed_role: HouseholdRole | None = HouseholdRole.MEMBER
    expires_at: datetime | None = None


class InvitationUpdate(BaseModel):
    """Change a pending invitation's role or expiry."""

    proposed_role: HouseholdRole | None = None
    expires_at: datetime | None = None


class InvitationResend(BaseModel):
    """Extend a pending invitation."""

    expires_at: datetime | None = None


class InvitationResponse(BaseModel):
    """Invitation response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    household_id: int
    household_name: str
    invited_user_id: int | None
    invited_email: str | None
    effective_email: str
    invited_by_id: int
    proposed_role: HouseholdRole
    status: InvitationStatus
    expires_at: datetime
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_invitation(cls, invitation) -> "InvitationResponse":
        return cls(
            id=invitation.id,
            household_id=invitation.household_id,
            household_name=invitation.household.name,
            invited_user_id=invitation.invited_user_id,
            invited_email=invitation.invited_email,
            effective_email=invitation.effective_email,
            invited_by_id=invitation.invited_by_id,
            proposed_role=invitation.proposed_role,
            status=invitation.status,
            expires_at=invitation.expires_at,
            created_at=invitation.created_at,
            updated_at=invitation.updated_at,
        )
