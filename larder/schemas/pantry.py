"""Pantry item schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from larder.schemas.location import LocationResponse
from larder.schemas.product import ProductResponse


class PantryItemCreate(BaseModel):
    """Stock a product at a location. Matching items are consolidated."""

    product_id: int | None = None
    location_id: int | None = None
    quantity: int | None = None
    unit_of_measure: str | None = Field(None, max_length=50)
    expiration_date: date | None = None
    notes: str | None = Field(None, max_length=500)


class PantryItemUpdate(BaseModel):
    """Update a pantry item. Fields left as None are not changed."""

    location_id: int | None = None
    quantity: int | None = None
    unit_of_measure: str | None = Field(None, max_length=50)
    expiration_date: date | None = None
    notes: str | None = Field(None, max_length=500)


class PantryItemResponse(BaseModel):
    """Pantry item response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    product: ProductResponse
    location: LocationResponse
    quantity: int | None
    unit_of_measure: str | None
    expiration_date: date | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class PantryBulkCreate(BaseModel):
    """Create or consolidate several pantry items."""

    items: list[PantryItemCreate]


class PantryBulkDelete(BaseModel):
    """Delete several pantry items by id."""

    ids: list[int]


class PantryQuantityUpdate(BaseModel):
    """Set quantities for several pantry items."""

    quantities: dict[int, int]


class PantryStatistics(BaseModel):
    """Aggregate figures for a household's pantry."""

    total_items: int
    unique_products: int
    expiring_soon: int
    low_stock: int
