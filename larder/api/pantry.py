"""Pantry item API endpoints."""

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status

from larder.api.dependencies import CurrentUser, get_pantry_service
from larder.schemas.pantry import (
    PantryBulkCreate,
    PantryBulkDelete,
    PantryItemCreate,
    PantryItemResponse,
    PantryItemUpdate,
    PantryQuantityUpdate,
    PantryStatistics,
)
from larder.schemas.product import CountResponse
from larder.services.pantry_service import PantryItemService

router = APIRouter(prefix="/api/v1/pantry-items", tags=["pantry"])

Pantry = Annotated[PantryItemService, Depends(get_pantry_service)]


@router.post("", response_model=PantryItemResponse, status_code=status.HTTP_201_CREATED)
def create_pantry_item(data: PantryItemCreate, current_user: CurrentUser, service: Pantry):
    """Stock a product at a location.

    If the location already holds the product with the same expiration date,
    the quantities are added together and the existing item is returned.
    """
    return service.create_pantry_item(data, current_user)


@router.post("/batch", response_model=CountResponse, status_code=status.HTTP_201_CREATED)
def create_multiple(data: PantryBulkCreate, current_user: CurrentUser, service: Pantry):
    return CountResponse(count=service.create_multiple_pantry_items(data.items, current_user))


@router.post("/batch-delete", response_model=CountResponse)
def delete_multiple(data: PantryBulkDelete, current_user: CurrentUser, service: Pantry):
    return CountResponse(count=service.delete_multiple_pantry_items(data.ids, current_user))


@router.post("/quantities", response_model=CountResponse)
def update_quantities(data: PantryQuantityUpdate, current_user: CurrentUser, service: Pantry):
    return CountResponse(count=service.update_quantities(data.quantities, current_user))


@router.get("/location/{location_id}", response_model=list[PantryItemResponse])
def items_by_location(location_id: int, current_user: CurrentUser, service: Pantry):
    return service.get_pantry_items_by_location(location_id, current_user)


@router.get(
    "/location/{location_id}/product/{product_id}", response_model=list[PantryItemResponse]
)
def product_variants(location_id: int, product_id: int, current_user: CurrentUser, service: Pantry):
    """List one product's items at a location, soonest expiration first."""
    return service.get_product_variants_by_location(location_id, product_id, current_user)


@router.get("/location/{location_id}/product/{product_id}/exists")
def product_variant_exists(
    location_id: int,
    product_id: int,
    current_user: CurrentUser,
    service: Pantry,
    expiration_date: date | None = None,
):
    exists = service.product_variant_exists(location_id, product_id, expiration_date, current_user)
    return {"exists": exists}


@router.delete("/location/{location_id}/product/{product_id}", response_model=CountResponse)
def delete_product_variant(
    location_id: int,
    product_id: int,
    current_user: CurrentUser,
    service: Pantry,
    expiration_date: date | None = None,
):
    deleted = service.delete_product_variant(location_id, product_id, expiration_date, current_user)
    return CountResponse(count=deleted)


@router.get("/household/{household_id}", response_model=list[PantryItemResponse])
def items_by_household(
    household_id: int,
    current_user: CurrentUser,
    service: Pantry,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
):
    return service.get_pantry_items_by_household(household_id, current_user, skip, limit)


@router.get("/household/{household_id}/low-stock", response_model=list[PantryItemResponse])
def low_stock_items(
    household_id: int,
    current_user: CurrentUser,
    service: Pantry,
    threshold: int | None = None,
):
    return service.get_low_stock_items(household_id, current_user, threshold)


@router.get("/household/{household_id}/expiring", response_model=list[PantryItemResponse])
def expiring_items(
    household_id: int,
    current_user: CurrentUser,
    service: Pantry,
    start_date: date | None = None,
    end_date: date | None = None,
):
    return service.get_expiring_items(household_id, current_user, start_date, end_date)


@router.get("/household/{household_id}/search", response_model=list[PantryItemResponse])
def search_items(
    household_id: int,
    current_user: CurrentUser,
    service: Pantry,
    term: Annotated[str, Query(min_length=1)],
):
    return service.search_pantry_items(household_id, term, current_user)


@router.get("/household/{household_id}/statistics", response_model=PantryStatistics)
def pantry_statistics(household_id: int, current_user: CurrentUser, service: Pantry):
    return service.get_pantry_statistics(household_id, current_user)


@router.get("/{item_id}", response_model=PantryItemResponse)
def get_pantry_item(item_id: int, current_user: CurrentUser, service: Pantry):
    return service.get_pantry_item_by_id(item_id, current_user)


@router.put("/{item_id}", response_model=PantryItemResponse)
def update_pantry_item(
    item_id: int, data: PantryItemUpdate, current_user: CurrentUser, service: Pantry
):
    return service.update_pantry_item(item_id, data, current_user)


@router.patch("/{item_id}", response_model=PantryItemResponse)
def patch_pantry_item(
    item_id: int, fields: dict[str, Any], current_user: CurrentUser, service: Pantry
):
    """Partially update an item. Send null to clear an optional field."""
    return service.patch_pantry_item(item_id, fields, current_user)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pantry_item(item_id: int, current_user: CurrentUser, service: Pantry):
    service.delete_pantry_item(item_id, current_user)
