"""Storage location API endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status

from larder.api.dependencies import CurrentUser, get_location_service
from larder.schemas.location import LocationCreate, LocationResponse, LocationUpdate
from larder.services.location_service import LocationService

router = APIRouter(prefix="/api/v1/locations", tags=["locations"])

Locations = Annotated[LocationService, Depends(get_location_service)]


@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
def create_location(data: LocationCreate, current_user: CurrentUser, service: Locations):
    return service.create_location(data, current_user)


@router.get("/household/{household_id}", response_model=list[LocationResponse])
def list_household_locations(household_id: int, current_user: CurrentUser, service: Locations):
    """List a household's locations ordered by name."""
    return service.get_locations_by_household(household_id, current_user)


@router.get("/household/{household_id}/search", response_model=list[LocationResponse])
def search_locations(
    household_id: int,
    current_user: CurrentUser,
    service: Locations,
    term: Annotated[str, Query(min_length=1)],
):
    return service.search_locations(household_id, term, current_user)


@router.get("/household/{household_id}/available")
def location_name_available(
    household_id: int,
    current_user: CurrentUser,
    service: Locations,
    name: Annotated[str, Query(min_length=1)],
):
    return {
        "name": name,
        "available": service.is_location_name_available(household_id, name, current_user),
    }


@router.get("/{location_id}", response_model=LocationResponse)
def get_location(location_id: int, current_user: CurrentUser, service: Locations):
    return service.get_location_by_id(location_id, current_user)


@router.put("/{location_id}", response_model=LocationResponse)
def update_location(
    location_id: int, data: LocationUpdate, current_user: CurrentUser, service: Locations
):
    return service.update_location(location_id, data, current_user)


@router.patch("/{location_id}", response_model=LocationResponse)
def patch_location(
    location_id: int, fields: dict[str, Any], current_user: CurrentUser, service: Locations
):
    """Partially update a location. Only name and description may be sent."""
    return service.patch_location(location_id, fields, current_user)


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_location(location_id: int, current_user: CurrentUser, service: Locations):
    service.delete_location(location_id, current_user)
