"""Household membership management."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from larder.exceptions import (
    ConflictError,
    InsufficientPermissionError,
    NotFoundError,
    ResourceStateError,
    ValidationError,
)
from larder.models.enums import HouseholdRole
from larder.models.household import HouseholdMember
from larder.models.user import User
from larder.schemas.household import HouseholdMemberCreate
from larder.services.access import (
    check_role_change,
    find_membership,
    get_household_or_404,
    require_membership,
    require_role,
    validate_assignable_role,
)

logger = logging.getLogger(__name__)


class HouseholdMemberService:
    """Add, list, remove and re-role household members."""

    def __init__(self, db: Session):
        self.db = db

    def _get_member_in_household(self, household_id: int, member_id: int) -> HouseholdMember:
        member = self.db.query(HouseholdMember).filter(HouseholdMember.id == member_id).first()
        if member is None:
            raise NotFoundError.for_resource("Member", member_id)
        if member.household_id != household_id:
            raise NotFoundError("Member not found in this household")
        return member

    def add_member_to_household(
        self, household_id: int, request: HouseholdMemberCreate, user: User
    ) -> HouseholdMember:
        if request.user_id is None:
            raise ValidationError("User ID cannot be null")
        role = validate_assignable_role(request.role)

        get_household_or_404(self.db, household_id)
        membership = require_membership(self.db, household_id, user)
        require_role(membership, HouseholdRole.ADMIN, "add members")

        target = self.db.query(User).filter(User.id == request.user_id).first()
        if target is None:
            raise NotFoundError.for_resource("User", request.user_id)
        if find_membership(self.db, household_id, target.id) is not None:
            raise ConflictError("User is already a member of this household")

        member = HouseholdMember(household_id=household_id, user_id=target.id, role=role)
        self.db.add(member)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("User is already a member of this household") from e

        self.db.refresh(member)
        logger.info(f"User {user.id} added user {target.id} to household {household_id} as {role.value}")
        return member

    def get_household_members(self, household_id: int, user: User) -> list[HouseholdMember]:
        get_household_or_404(self.db, household_id)
        require_membership(self.db, household_id, user)
        return (
            self.db.query(HouseholdMember)
            .filter(HouseholdMember.household_id == household_id)
            .order_by(HouseholdMember.created_at, HouseholdMember.id)
            .all()
        )

    def get_member_by_id(self, household_id: int, member_id: int, user: User) -> HouseholdMember:
        get_household_or_404(self.db, household_id)
        require_membership(self.db, household_id, user)
        return self._get_member_in_household(household_id, member_id)

    def remove_member(self, household_id: int, member_id: int, user: User) -> None:
        """Remove a member. The OWNER cannot be removed; ADMINs cannot remove ADMINs."""
        get_household_or_404(self.db, household_id)
        membership = require_membership(self.db, household_id, user)
        require_role(membership, HouseholdRole.ADMIN, "remove members")

        target = self._get_member_in_household(household_id, member_id)
        if target.role == HouseholdRole.OWNER:
            raise ResourceStateError("Cannot remove the owner from the household")
        if target.role == HouseholdRole.ADMIN and membership.role != HouseholdRole.OWNER:
            raise InsufficientPermissionError("Only the household owner can remove an admin")

        self.db.delete(target)
        self.db.commit()
        logger.info(f"User {user.id} removed member {member_id} from household {household_id}")

    def update_member_role(
        self, household_id: int, member_id: int, role: HouseholdRole | None, user: User
    ) -> HouseholdMember:
        role = validate_assignable_role(role)

        get_household_or_404(self.db, household_id)
        membership = require_membership(self.db, household_id, user)
        target = self._get_member_in_household(household_id, member_id)
        check_role_change(membership, target)

        target.role = role
        self.db.commit()
        self.db.refresh(target)
        logger.info(f"User {user.id} set role of member {member_id} to {role.value}")
        return target
