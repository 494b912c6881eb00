"""Household API endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status

from larder.api.dependencies import CurrentUser, get_household_service
from larder.schemas.household import (
    HouseholdCreate,
    HouseholdMemberResponse,
    HouseholdResponse,
    HouseholdUpdate,
    OwnershipTransfer,
    RoleChange,
)
from larder.services.household_service import HouseholdService

router = APIRouter(prefix="/api/v1/households", tags=["households"])

Households = Annotated[HouseholdService, Depends(get_household_service)]


@router.post("", response_model=HouseholdResponse, status_code=status.HTTP_201_CREATED)
def create_household(data: HouseholdCreate, current_user: CurrentUser, service: Households):
    """Create a household owned by the current user."""
    return service.create_household(data.name, current_user)


@router.get("", response_model=list[HouseholdResponse])
def list_households(current_user: CurrentUser, service: Households):
    """List households the current user belongs to."""
    return service.get_user_households(current_user)


@router.get("/search", response_model=list[HouseholdResponse])
def search_households(
    current_user: CurrentUser,
    service: Households,
    term: Annotated[str, Query(min_length=1)],
):
    """Search the current user's households by name."""
    return service.search_households(term, current_user)


@router.get("/{household_id}", response_model=HouseholdResponse)
def get_household(household_id: int, current_user: CurrentUser, service: Households):
    return service.get_household_by_id(household_id, current_user)


@router.put("/{household_id}", response_model=HouseholdResponse)
def update_household(
    household_id: int, data: HouseholdUpdate, current_user: CurrentUser, service: Households
):
    return service.update_household(household_id, data.name, current_user)


@router.patch("/{household_id}", response_model=HouseholdResponse)
def patch_household(
    household_id: int, fields: dict[str, Any], current_user: CurrentUser, service: Households
):
    """Partially update a household."""
    return service.patch_household(household_id, fields, current_user)


@router.delete("/{household_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_household(household_id: int, current_user: CurrentUser, service: Households):
    """Delete a household (owner only)."""
    service.delete_household(household_id, current_user)


@router.post("/{household_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_household(household_id: int, current_user: CurrentUser, service: Households):
    service.leave_household(household_id, current_user)


@router.post("/{household_id}/transfer-ownership", response_model=HouseholdResponse)
def transfer_ownership(
    household_id: int, data: OwnershipTransfer, current_user: CurrentUser, service: Households
):
    """Hand ownership to another member. The previous owner becomes an admin."""
    return service.transfer_ownership(household_id, data.new_owner_user_id, current_user)


@router.put("/{household_id}/members/{member_id}/role", response_model=HouseholdMemberResponse)
def change_member_role(
    household_id: int,
    member_id: int,
    data: RoleChange,
    current_user: CurrentUser,
    service: Households,
):
    member = service.change_member_role(household_id, member_id, data.role, current_user)
    return HouseholdMemberResponse.from_member(member)
