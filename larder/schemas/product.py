"""Product schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from larder.models.enums import ProductDataSource


class ProductCreate(BaseModel):
    """Create a product. Missing fields may be filled from the UPC lookup."""

    upc: str | None = Field(None, max_length=50)
    name: str | None = Field(None, max_length=255)
    brand: str | None = Field(None, max_length=255)
    category: str | None = Field(None, max_length=255)
    default_expiration_days: int | None = Field(None, ge=0)


class ProductUpdate(BaseModel):
    """Replace a product's editable fields."""

    name: str = Field(..., min_length=1, max_length=255)
    brand: str | None = Field(None, max_length=255)
    category: str | None = Field(None, max_length=255)
    default_expiration_days: int | None = Field(None, ge=0)


class ProductResponse(BaseModel):
    """Product response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    upc: str
    name: str
    brand: str | None
    category: str | None
    default_expiration_days: int | None
    data_source: ProductDataSource
    requires_api_retry: bool
    retry_attempts: int
    last_retry_attempt: datetime | None
    created_at: datetime
    updated_at: datetime


class ProductStatistics(BaseModel):
    """Counts of products by data source and retry state."""

    total: int
    manual: int
    api: int
    hybrid: int
    requires_retry: int


class ProductBulkDelete(BaseModel):
    """Delete several products by id."""

    ids: list[int]


class CountResponse(BaseModel):
    """Number of records a batch operation processed."""

    count: int
