"""FastAPI dependencies for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from larder.database import get_db
from larder.models.user import User
from larder.services.auth import resolve_current_user
from larder.services.household_service import HouseholdService
from larder.services.invitation_service import HouseholdInvitationService
from larder.services.location_service import LocationService
from larder.services.member_service import HouseholdMemberService
from larder.services.pantry_service import PantryItemService
from larder.services.product_service import ProductService
from larder.services.upc_lookup import UpcLookupClient

security = HTTPBearer()


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    user = resolve_current_user(db, credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_upc_lookup_client() -> UpcLookupClient:
    """Get Open Food Facts client instance."""
    return UpcLookupClient()


def get_household_service(db: Annotated[Session, Depends(get_db)]) -> HouseholdService:
    return HouseholdService(db)


def get_member_service(db: Annotated[Session, Depends(get_db)]) -> HouseholdMemberService:
    return HouseholdMemberService(db)


def get_invitation_service(
    db: Annotated[Session, Depends(get_db)],
) -> HouseholdInvitationService:
    return HouseholdInvitationService(db)


def get_product_service(
    db: Annotated[Session, Depends(get_db)],
    upc_client: Annotated[UpcLookupClient, Depends(get_upc_lookup_client)],
) -> ProductService:
    """Get product service with dependencies."""
    return ProductService(db, upc_client)


def get_location_service(db: Annotated[Session, Depends(get_db)]) -> LocationService:
    return LocationService(db)


def get_pantry_service(db: Annotated[Session, Depends(get_db)]) -> PantryItemService:
    return PantryItemService(db)
