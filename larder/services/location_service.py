"""Storage locations scoped to a household."""

import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from larder.exceptions import ConflictError, DataIntegrityError, NotFoundError, ValidationError
from larder.models.location import Location
from larder.models.user import User
from larder.schemas.location import LocationCreate, LocationUpdate
from larder.services.access import get_household_or_404, require_membership

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = {"name", "description"}


def _clean_name(name: str | None) -> str:
    if name is not None and not isinstance(name, str):
        raise ValidationError("Location name must be a string")
    if name is None or not name.strip():
        raise ValidationError("Location name cannot be empty")
    return name.strip()


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("Location description must be a string")
    return description.strip() or None


class LocationService:
    """Manage named storage locations. Names are unique per household (case-sensitive)."""

    def __init__(self, db: Session):
        self.db = db

    def _name_exists(self, household_id: int, name: str, exclude_id: int | None = None) -> bool:
        query = self.db.query(Location.id).filter(
            Location.household_id == household_id, Location.name == name
        )
        if exclude_id is not None:
            query = query.filter(Location.id != exclude_id)
        return query.first() is not None

    def _get_location(self, location_id: int, user: User) -> Location:
        location = self.db.query(Location).filter(Location.id == location_id).first()
        if location is None:
            raise NotFoundError.for_resource("Location", location_id)
        require_membership(self.db, location.household_id, user)
        return location

    def _rename(self, location: Location, name: str) -> None:
        if name != location.name and self._name_exists(location.household_id, name, location.id):
            raise ConflictError(f"Location with name '{name}' already exists in this household")
        location.name = name

    def _commit(self, location: Location) -> Location:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                f"Location with name '{location.name}' already exists in this household"
            ) from e
        self.db.refresh(location)
        return location

    def create_location(self, request: LocationCreate, user: User) -> Location:
        if request.household_id is None:
            raise ValidationError("Household ID cannot be null")
        name = _clean_name(request.name)

        get_household_or_404(self.db, request.household_id)
        require_membership(self.db, request.household_id, user)
        if self._name_exists(request.household_id, name):
            raise ConflictError(f"Location with name '{name}' already exists in this household")

        location = Location(
            household_id=request.household_id,
            name=name,
            description=_clean_description(request.description),
        )
        self.db.add(location)
        self._commit(location)
        logger.info(f"User {user.id} created location {location.id} in household {location.household_id}")
        return location

    def get_location_by_id(self, location_id: int, user: User) -> Location:
        return self._get_location(location_id, user)

    def get_locations_by_household(self, household_id: int, user: User) -> list[Location]:
        get_household_or_404(self.db, household_id)
        require_membership(self.db, household_id, user)
        return (
            self.db.query(Location)
            .filter(Location.household_id == household_id)
            .order_by(Location.name)
            .all()
        )

    def update_location(self, location_id: int, request: LocationUpdate, user: User) -> Location:
        name = _clean_name(request.name)
        location = self._get_location(location_id, user)

        self._rename(location, name)
        location.description = _clean_description(request.description)
        return self._commit(location)

    def patch_location(self, location_id: int, fields: dict[str, Any], user: User) -> Location:
        """Apply a partial update. Only ``name`` and ``description`` are accepted."""
        unsupported = sorted(set(fields) - PATCHABLE_FIELDS)
        if unsupported:
            raise ValidationError(f"Unsupported fields for location patch: {', '.join(unsupported)}")
        name = _clean_name(fields["name"]) if "name" in fields else None
        description = _clean_description(fields.get("description"))

        location = self._get_location(location_id, user)
        if name is not None:
            self._rename(location, name)
        if "description" in fields:
            location.description = description
        return self._commit(location)

    def delete_location(self, location_id: int, user: User) -> None:
        location = self._get_location(location_id, user)
        name = location.name

        self.db.delete(location)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DataIntegrityError(
                f"Cannot delete location '{name}': it still contains pantry items. "
                "Move or remove them first."
            ) from e
        logger.info(f"User {user.id} deleted location {location_id}")

    def search_locations(self, household_id: int, term: str, user: User) -> list[Location]:
        if not term or not term.strip():
            raise ValidationError("Search term cannot be empty")
        get_household_or_404(self.db, household_id)
        require_membership(self.db, household_id, user)

        term = term.strip()
        return (
            self.db.query(Location)
            .filter(
                Location.household_id == household_id,
                or_(
                    Location.name.icontains(term, autoescape=True),
                    Location.description.icontains(term, autoescape=True),
                ),
            )
            .order_by(Location.name)
            .all()
        )

    def is_location_name_available(self, household_id: int, name: str, user: User) -> bool:
        name = _clean_name(name)
        get_household_or_404(self.db, household_id)
        require_membership(self.db, household_id, user)
        return not self._name_exists(household_id, name)
