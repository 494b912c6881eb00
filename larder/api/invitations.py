"""Household invitation API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from larder.api.dependencies import CurrentUser, get_invitation_service
from larder.models.enums import InvitationStatus
from larder.schemas.invitation import (
    InvitationCreate,
    InvitationResend,
    InvitationResponse,
    InvitationUpdate,
)
from larder.services.invitation_service import HouseholdInvitationService

router = APIRouter(prefix="/api/v1", tags=["invitations"])

Invitations = Annotated[HouseholdInvitationService, Depends(get_invitation_service)]


@router.get("/invitations/me", response_model=list[InvitationResponse])
def list_my_invitations(
    current_user: CurrentUser,
    service: Invitations,
    status_filter: Annotated[InvitationStatus | None, Query(alias="status")] = InvitationStatus.PENDING,
):
    """List invitations addressed to the current user.

    Pending invitations sent to the user's email before they registered are
    linked to the account first.
    """
    invitations = service.get_my_invitations(current_user, status_filter)
    return [InvitationResponse.from_invitation(i) for i in invitations]


@router.post("/invitations/{invitation_id}/accept", response_model=InvitationResponse)
def accept_invitation(invitation_id: int, current_user: CurrentUser, service: Invitations):
    return InvitationResponse.from_invitation(service.accept_invitation(invitation_id, current_user))


@router.post("/invitations/{invitation_id}/decline", response_model=InvitationResponse)
def decline_invitation(invitation_id: int, current_user: CurrentUser, service: Invitations):
    return InvitationResponse.from_invitation(
        service.decline_invitation(invitation_id, current_user)
    )


@router.post(
    "/households/{household_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
)
def send_invitation(
    household_id: int, data: InvitationCreate, current_user: CurrentUser, service: Invitations
):
    """Invite a user by id or by email address."""
    invitation = service.send_invitation(household_id, data, current_user)
    return InvitationResponse.from_invitation(invitation)


@router.get("/households/{household_id}/invitations", response_model=list[InvitationResponse])
def list_household_invitations(
    household_id: int,
    current_user: CurrentUser,
    service: Invitations,
    status_filter: Annotated[InvitationStatus | None, Query(alias="status")] = None,
):
    invitations = service.get_household_invitations(household_id, current_user, status_filter)
    return [InvitationResponse.from_invitation(i) for i in invitations]


@router.get(
    "/households/{household_id}/invitations/{invitation_id}", response_model=InvitationResponse
)
def get_invitation(
    household_id: int, invitation_id: int, current_user: CurrentUser, service: Invitations
):
    invitation = service.get_invitation_by_id(household_id, invitation_id, current_user)
    return InvitationResponse.from_invitation(invitation)


@router.put(
    "/households/{household_id}/invitations/{invitation_id}", response_model=InvitationResponse
)
def update_invitation(
    household_id: int,
    invitation_id: int,
    data: InvitationUpdate,
    current_user: CurrentUser,
    service: Invitations,
):
    invitation = service.update_invitation(household_id, invitation_id, data, current_user)
    return InvitationResponse.from_invitation(invitation)


@router.post(
    "/households/{household_id}/invitations/{invitation_id}/resend",
    response_model=InvitationResponse,
)
def resend_invitation(
    household_id: int,
    invitation_id: int,
    data: InvitationResend,
    current_user: CurrentUser,
    service: Invitations,
):
    invitation = service.resend_invitation(
        household_id, invitation_id, current_user, data.expires_at
    )
    return InvitationResponse.from_invitation(invitation)


@router.delete(
    "/households/{household_id}/invitations/{invitation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def cancel_invitation(
    household_id: int, invitation_id: int, current_user: CurrentUser, service: Invitations
):
    """Withdraw a pending invitation."""
    service.cancel_invitation(household_id, invitation_id, current_user)
