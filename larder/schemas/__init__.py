"""Pydantic schemas for API requests and responses."""

from larder.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from larder.schemas.household import (
    HouseholdCreate,
    HouseholdMemberCreate,
    HouseholdMemberResponse,
    HouseholdResponse,
    HouseholdUpdate,
)
from larder.schemas.invitation import InvitationCreate, InvitationResponse, InvitationUpdate
from larder.schemas.location import LocationCreate, LocationResponse, LocationUpdate
from larder.schemas.pantry import PantryItemCreate, PantryItemResponse, PantryItemUpdate
from larder.schemas.product import ProductCreate, ProductResponse, ProductUpdate

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "AuthResponse",
    "HouseholdCreate",
    "HouseholdUpdate",
    "HouseholdResponse",
    "HouseholdMemberCreate",
    "HouseholdMemberResponse",
    "InvitationCreate",
    "InvitationUpdate",
    "InvitationResponse",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "LocationCreate",
    "LocationUpdate",
    "LocationResponse",
    "PantryItemCreate",
    "PantryItemUpdate",
    "PantryItemResponse",
]
