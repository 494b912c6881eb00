"""SQLAlchemy models."""

from larder.models.household import Household, HouseholdMember
from larder.models.invitation import HouseholdInvitation
from larder.models.location import Location
from larder.models.pantry import PantryItem
from larder.models.product import Product
from larder.models.user import User

__all__ = [
    "User",
    "Household",
    "HouseholdMember",
    "HouseholdInvitation",
    "Location",
    "Product",
    "PantryItem",
]
