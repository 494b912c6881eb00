"""Household lifecycle, ownership and role management."""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from larder.exceptions import (
    BusinessRuleViolationError,
    ConflictError,
    NotFoundError,
    ResourceStateError,
    ValidationError,
)
from larder.models.enums import HouseholdRole
from larder.models.household import Household, HouseholdMember
from larder.models.location import Location
from larder.models.pantry import PantryItem
from larder.models.user import User
from larder.services.access import (
    check_role_change,
    find_membership,
    require_role,
    validate_assignable_role,
)

logger = logging.getLogger(__name__)


def validate_household_name(name: str | None) -> str:
    if name is None:
        raise ValidationError("Household name cannot be null")
    if not isinstance(name, str):
        raise ValidationError("Household name must be a string")
    if not name.strip():
        raise ValidationError("Household name cannot be empty")
    return name.strip()


class HouseholdService:
    """Create, share and administer households.

    Callers without a membership in a household are told it does not exist.
    """

    def __init__(self, db: Session):
        self.db = db

    def _name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        query = self.db.query(Household.id).filter(Household.name == name)
        if exclude_id is not None:
            query = query.filter(Household.id != exclude_id)
        return query.first() is not None

    def _get_with_membership(
        self, household_id: int, user: User
    ) -> tuple[Household, HouseholdMember]:
        household = self.db.query(Household).filter(Household.id == household_id).first()
        membership = find_membership(self.db, household_id, user.id) if household else None
        if household is None or membership is None:
            raise NotFoundError.for_resource("Household", household_id)
        return household, membership

    def _commit_rename(self, household: Household) -> Household:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Household with name '{household.name}' already exists") from e
        self.db.refresh(household)
        return household

    def create_household(self, name: str | None, user: User) -> Household:
        """Create a household with the caller as its OWNER."""
        name = validate_household_name(name)
        if self._name_taken(name):
            raise ConflictError(f"Household with name '{name}' already exists")

        household = Household(name=name)
        self.db.add(household)
        self.db.flush()
        self.db.add(
            HouseholdMember(household_id=household.id, user_id=user.id, role=HouseholdRole.OWNER)
        )
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Household with name '{name}' already exists") from e

        self.db.refresh(household)
        logger.info(f"User {user.id} created household {household.id} ({household.name})")
        return household

    def get_household_by_id(self, household_id: int, user: User) -> Household:
        household, _ = self._get_with_membership(household_id, user)
        return household

    def get_user_households(self, user: User) -> list[Household]:
        return (
            self.db.query(Household)
            .join(HouseholdMember, HouseholdMember.household_id == Household.id)
            .filter(HouseholdMember.user_id == user.id)
            .order_by(Household.name)
            .all()
        )

    def update_household(self, household_id: int, name: str | None, user: User) -> Household:
        name = validate_household_name(name)
        household, membership = self._get_with_membership(household_id, user)
        require_role(membership, HouseholdRole.ADMIN, "update this household")

        if name != household.name and self._name_taken(name, exclude_id=household.id):
            raise ConflictError(f"Household with name '{name}' already exists")

        household.name = name
        return self._commit_rename(household)

    def patch_household(self, household_id: int, fields: dict[str, Any], user: User) -> Household:
        """Apply a partial update. Unrecognized keys are ignored."""
        name = validate_household_name(fields["name"]) if "name" in fields else None

        household, membership = self._get_with_membership(household_id, user)
        require_role(membership, HouseholdRole.ADMIN, "update this household")

        if name is not None and name != household.name:
            if self._name_taken(name, exclude_id=household.id):
                raise ConflictError(f"Household with name '{name}' already exists")
            household.name = name

        return self._commit_rename(household)

    def delete_household(self, household_id: int, user: User) -> None:
        """Delete a household with its members, invitations, locations and stock."""
        household, membership = self._get_with_membership(household_id, user)
        require_role(membership, HouseholdRole.OWNER, "delete this household")

        location_ids = self.db.query(Location.id).filter(Location.household_id == household.id)
        self.db.query(PantryItem).filter(PantryItem.location_id.in_(location_ids)).delete(
            synchronize_session=False
        )
        # Loaded location.pantry_items collections still reference the deleted rows
        self.db.expire_all()
        self.db.delete(household)
        self.db.commit()
        logger.info(f"User {user.id} deleted household {household_id}")

    def leave_household(self, household_id: int, user: User) -> None:
        _, membership = self._get_with_membership(household_id, user)
        if membership.role == HouseholdRole.OWNER:
            raise ResourceStateError("Owner cannot leave a household. Transfer ownership first.")

        self.db.delete(membership)
        self.db.commit()
        logger.info(f"User {user.id} left household {household_id}")

    def transfer_ownership(
        self, household_id: int, new_owner_user_id: int | None, user: User
    ) -> Household:
        """Demote the current OWNER to ADMIN and promote another member to OWNER."""
        if new_owner_user_id is None:
            raise ValidationError("New owner ID cannot be null")

        household, membership = self._get_with_membership(household_id, user)
        require_role(membership, HouseholdRole.OWNER, "transfer ownership")

        if new_owner_user_id == user.id:
            raise BusinessRuleViolationError("You are already the owner of this household")

        new_owner = find_membership(self.db, household_id, new_owner_user_id)
        if new_owner is None:
            raise NotFoundError("New owner is not a member of this household")

        membership.role = HouseholdRole.ADMIN
        self.db.add(membership)
        self.db.flush()
        new_owner.role = HouseholdRole.OWNER
        self.db.add(new_owner)
        self.db.commit()
        self.db.refresh(household)

        logger.info(
            f"Ownership of household {household_id} transferred from user {user.id} "
            f"to user {new_owner_user_id}"
        )
        return household

    def search_households(self, term: str | None, user: User) -> list[Household]:
        """Case-insensitive substring search over the caller's households."""
        if term is None:
            raise ValidationError("Search term cannot be null")

        return (
            self.db.query(Household)
            .join(HouseholdMember, HouseholdMember.household_id == Household.id)
            .filter(
                Household.name.icontains(term.strip(), autoescape=True),
                HouseholdMember.user_id == user.id,
            )
            .order_by(Household.name)
            .all()
        )

    def change_member_role(
        self, household_id: int, member_id: int, role: HouseholdRole | None, user: User
    ) -> HouseholdMember:
        role = validate_assignable_role(role)
        _, membership = self._get_with_membership(household_id, user)

        target = self.db.query(HouseholdMember).filter(HouseholdMember.id == member_id).first()
        if target is None or target.household_id != household_id:
            raise NotFoundError("Member not found in this household")

        check_role_change(membership, target)

        target.role = role
        self.db.commit()
        self.db.refresh(target)
        logger.info(
            f"User {user.id} set role of member {member_id} in household {household_id} to {role.value}"
        )
        return target
