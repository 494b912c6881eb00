"""Household access checks shared by the domain services."""

from sqlalchemy.orm import Session

from larder.exceptions import (
    InsufficientPermissionError,
    NotFoundError,
    ResourceStateError,
    ValidationError,
)
from larder.models.enums import HouseholdRole
from larder.models.household import Household, HouseholdMember
from larder.models.user import User


def get_household_or_404(db: Session, household_id: int) -> Household:
    household = db.query(Household).filter(Household.id == household_id).first()
    if household is None:
        raise NotFoundError.for_resource("Household", household_id)
    return household


def find_membership(db: Session, household_id: int, user_id: int) -> HouseholdMember | None:
    return (
        db.query(HouseholdMember)
        .filter(HouseholdMember.household_id == household_id, HouseholdMember.user_id == user_id)
        .first()
    )


def is_member(db: Session, household_id: int, user_id: int) -> bool:
    return find_membership(db, household_id, user_id) is not None


def require_membership(
    db: Session,
    household_id: int,
    user: User,
    message: str = "You are not a member of this household",
) -> HouseholdMember:
    """Return the caller's membership or raise InsufficientPermissionError."""
    membership = find_membership(db, household_id, user.id)
    if membership is None:
        raise InsufficientPermissionError(message)
    return membership


def require_role(membership: HouseholdMember, role: HouseholdRole, action: str) -> None:
    """Raise unless the membership holds ``role`` or higher."""
    if membership.role.at_least(role):
        return
    if role == HouseholdRole.OWNER:
        raise InsufficientPermissionError(f"Only the household owner can {action}")
    raise InsufficientPermissionError(f"You don't have permission to {action}")


def validate_assignable_role(role: HouseholdRole | None) -> HouseholdRole:
    """Roles handed out by role changes, direct adds and invitations."""
    if role is None:
        raise ValidationError("Role cannot be null")
    if role == HouseholdRole.OWNER:
        raise ValidationError("Cannot set role to OWNER. Use transfer ownership instead.")
    return role


def check_role_change(actor: HouseholdMember, target: HouseholdMember) -> None:
    """Authorize ``actor`` changing ``target``'s role.

    OWNER and ADMIN may change a MEMBER; only the OWNER may change an ADMIN.
    The OWNER's own role only moves through ownership transfer.
    """
    require_role(actor, HouseholdRole.ADMIN, "change member roles")

    if target.role == HouseholdRole.OWNER:
        if actor.role == HouseholdRole.OWNER:
            raise ResourceStateError(
                "Cannot change the owner's role. Transfer ownership first."
            )
        raise InsufficientPermissionError(
            "Only an owner can change the role of another owner or admin"
        )

    if target.role == HouseholdRole.ADMIN and actor.role != HouseholdRole.OWNER:
        raise InsufficientPermissionError(
            "Only an owner can change the role of another owner or admin"
        )
