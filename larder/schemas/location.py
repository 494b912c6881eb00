"""Location schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LocationCreate(BaseModel):
    """Create a location in a household."""

    household_id: int | None = None
    name: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=255)


class LocationUpdate(BaseModel):
    """Replace a location's name and description."""

    name: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=255)


class LocationResponse(BaseModel):
    """Location response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    household_id: int
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime
