"""Household member API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from larder.api.dependencies import CurrentUser, get_member_service
from larder.schemas.household import HouseholdMemberCreate, HouseholdMemberResponse, RoleChange
from larder.services.member_service import HouseholdMemberService

router = APIRouter(prefix="/api/v1/households/{household_id}/members", tags=["members"])

Members = Annotated[HouseholdMemberService, Depends(get_member_service)]


@router.get("", response_model=list[HouseholdMemberResponse])
def list_members(household_id: int, current_user: CurrentUser, service: Members):
    """List all members of a household."""
    members = service.get_household_members(household_id, current_user)
    return [HouseholdMemberResponse.from_member(m) for m in members]


@router.post("", response_model=HouseholdMemberResponse, status_code=status.HTTP_201_CREATED)
def add_member(
    household_id: int, data: HouseholdMemberCreate, current_user: CurrentUser, service: Members
):
    """Add an existing user to a household (admin or owner)."""
    member = service.add_member_to_household(household_id, data, current_user)
    return HouseholdMemberResponse.from_member(member)


@router.get("/{member_id}", response_model=HouseholdMemberResponse)
def get_member(household_id: int, member_id: int, current_user: CurrentUser, service: Members):
    member = service.get_member_by_id(household_id, member_id, current_user)
    return HouseholdMemberResponse.from_member(member)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(household_id: int, member_id: int, current_user: CurrentUser, service: Members):
    service.remove_member(household_id, member_id, current_user)


@router.patch("/{member_id}/role", response_model=HouseholdMemberResponse)
def update_member_role(
    household_id: int,
    member_id: int,
    data: RoleChange,
    current_user: CurrentUser,
    service: Members,
):
    member = service.update_member_role(household_id, member_id, data.role, current_user)
    return HouseholdMemberResponse.from_member(member)
