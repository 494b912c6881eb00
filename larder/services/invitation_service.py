"""Household invitations: sending, answering and linking email-only invites."""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from larder.config import get_settings
from larder.exceptions import (
    BusinessRuleViolationError,
    ConflictError,
    InsufficientPermissionError,
    NotFoundError,
    ResourceStateError,
    ValidationError,
)
from larder.models.enums import HouseholdRole, InvitationStatus
from larder.models.household import HouseholdMember
from larder.models.invitation import HouseholdInvitation, as_utc
from larder.models.user import User
from larder.schemas.invitation import InvitationCreate, InvitationUpdate
from larder.services.access import (
    find_membership,
    get_household_or_404,
    is_member,
    require_membership,
    require_role,
)
from larder.services.auth import get_user_by_email

logger = logging.getLogger(__name__)


def _validate_proposed_role(role: HouseholdRole | None) -> HouseholdRole:
    if role is None:
        raise ValidationError("Proposed role cannot be null")
    if role == HouseholdRole.OWNER:
        raise ValidationError("Cannot invite user as OWNER")
    return role


def _validate_expiry(expires_at: datetime | None, now: datetime) -> None:
    if expires_at is not None and as_utc(expires_at) < now:
        raise ValidationError("Expiry date cannot be in the past")


class HouseholdInvitationService:
    """Invitation state machine.

    PENDING moves to ACCEPTED or DECLINED, or is deleted on cancel. Expiry is
    evaluated when an invitation is used; nothing sweeps expired rows.
    """

    def __init__(self, db: Session):
        self.db = db
        self.expiry_days = get_settings().invitation_expiry_days

    def _default_expiry(self, now: datetime) -> datetime:
        return now + timedelta(days=self.expiry_days)

    def _get_invitation(self, invitation_id: int) -> HouseholdInvitation:
        invitation = (
            self.db.query(HouseholdInvitation).filter(HouseholdInvitation.id == invitation_id).first()
        )
        if invitation is None:
            raise NotFoundError("Invitation not found")
        return invitation

    def _get_invitation_in_household(
        self, household_id: int, invitation_id: int
    ) -> HouseholdInvitation:
        invitation = self._get_invitation(invitation_id)
        if invitation.household_id != household_id:
            raise NotFoundError("Invitation not found in this household")
        return invitation

    def _claim(self, invitation: HouseholdInvitation, user: User) -> None:
        """Check the caller is the recipient and that the invitation is still open."""
        if not invitation.is_addressed_to(user):
            raise InsufficientPermissionError("You are not the invited user")
        if not invitation.is_pending:
            raise ResourceStateError("Invitation has already been processed")

    def _link(self, invitation: HouseholdInvitation, user: User) -> None:
        if invitation.is_email_only:
            invitation.link_to(user)
            self.db.flush()
            logger.info(f"Linked email invitation {invitation.id} to user {user.id}")

    def _has_pending_invitation(
        self, household_id: int, email: str, user_id: int | None
    ) -> bool:
        recipient_filter = func.lower(HouseholdInvitation.invited_email) == email
        if user_id is not None:
            recipient_filter = or_(recipient_filter, HouseholdInvitation.invited_user_id == user_id)
        return (
            self.db.query(HouseholdInvitation.id)
            .filter(
                HouseholdInvitation.household_id == household_id,
                HouseholdInvitation.status == InvitationStatus.PENDING,
                recipient_filter,
            )
            .first()
            is not None
        )

    def send_invitation(
        self, household_id: int, request: InvitationCreate, user: User
    ) -> HouseholdInvitation:
        """Invite an account or an email address.

        An email with no matching account produces an email-only invitation
        that is linked once someone registers with that address.
        """
        email = (request.invited_user_email or "").strip().lower() or None
        if request.invited_user_id is None and email is None:
            raise ValidationError("Either invited_user_id or invited_user_email must be provided")
        if request.invited_user_id is not None and email is not None:
            raise ValidationError("Provide either invited_user_id or invited_user_email, not both")
        role = _validate_proposed_role(request.proposed_role)
        now = datetime.now(UTC)
        _validate_expiry(request.expires_at, now)

        household = get_household_or_404(self.db, household_id)
        membership = require_membership(
            self.db, household_id, user, "You don't have access to this household"
        )
        require_role(membership, HouseholdRole.ADMIN, "send invitations")

        if request.invited_user_id is not None:
            target = self.db.query(User).filter(User.id == request.invited_user_id).first()
            if target is None:
                raise NotFoundError.for_resource("User", request.invited_user_id)
        else:
            target = get_user_by_email(self.db, email)

        effective_email = target.email.lower() if target else email
        if (target is not None and target.id == user.id) or effective_email == user.email.lower():
            raise BusinessRuleViolationError("Cannot invite yourself")

        if target is not None and is_member(self.db, household_id, target.id):
            raise ConflictError("User is already a member of this household")

        if self._has_pending_invitation(household_id, effective_email, target.id if target else None):
            raise ConflictError(
                f"{effective_email} already has a pending invitation to this household"
            )

        invitation = HouseholdInvitation(
            household_id=household.id,
            invited_user_id=target.id if target else None,
            invited_email=None if target else email,
            invited_by_id=user.id,
            proposed_role=role,
            status=InvitationStatus.PENDING,
            expires_at=request.expires_at or self._default_expiry(now),
        )
        self.db.add(invitation)
        self.db.commit()
        self.db.refresh(invitation)

        logger.info(
            f"User {user.id} invited {effective_email} to household {household_id} "
            f"as {role.value} (email only: {target is None})"
        )
        return invitation

    def get_household_invitations(
        self, household_id: int, user: User, status: InvitationStatus | None = None
    ) -> list[HouseholdInvitation]:
        get_household_or_404(self.db, household_id)
        require_membership(self.db, household_id, user, "You don't have access to this household")

        query = self.db.query(HouseholdInvitation).filter(
            HouseholdInvitation.household_id == household_id
        )
        if status is not None:
            query = query.filter(HouseholdInvitation.status == status)
        return query.order_by(HouseholdInvitation.created_at.desc(), HouseholdInvitation.id.desc()).all()

    def get_invitation_by_id(
        self, household_id: int, invitation_id: int, user: User
    ) -> HouseholdInvitation:
        get_household_or_404(self.db, household_id)
        require_membership(self.db, household_id, user, "You don't have access to this household")
        return self._get_invitation_in_household(household_id, invitation_id)

    def get_my_invitations(
        self, user: User, status: InvitationStatus | None = InvitationStatus.PENDING
    ) -> list[HouseholdInvitation]:
        """List the caller's invitations, linking email-only ones first.

        Expired invitations are left out of the PENDING listing.
        """
        self.link_email_invitations_to_user(user)

        query = self.db.query(HouseholdInvitation).filter(
            HouseholdInvitation.invited_user_id == user.id
        )
        if status is not None:
            query = query.filter(HouseholdInvitation.status == status)
        invitations = query.order_by(
            HouseholdInvitation.created_at.desc(), HouseholdInvitation.id.desc()
        ).all()

        if status == InvitationStatus.PENDING:
            now = datetime.now(UTC)
            invitations = [inv for inv in invitations if not inv.is_expired(now)]
        return invitations

    def link_email_invitations_to_user(self, user: User | None) -> int:
        """Point pending email-only invitations for the user's address at the account."""
        if user is None or not user.email:
            return 0

        linked = (
            self.db.query(HouseholdInvitation)
            .filter(
                func.lower(HouseholdInvitation.invited_email) == user.email.lower(),
                HouseholdInvitation.status == InvitationStatus.PENDING,
            )
            .update(
                {
                    HouseholdInvitation.invited_user_id: user.id,
                    HouseholdInvitation.invited_email: None,
                    HouseholdInvitation.updated_at: datetime.now(UTC),
                },
                synchronize_session="fetch",
            )
        )
        self.db.commit()

        if linked:
            logger.info(f"Linked {linked} email invitation(s) to user {user.id}")
        return linked

    def accept_invitation(self, invitation_id: int, user: User) -> HouseholdInvitation:
        invitation = self._get_invitation(invitation_id)
        self._claim(invitation, user)
        if invitation.is_expired():
            raise ResourceStateError("Invitation has expired")
        if is_member(self.db, invitation.household_id, user.id):
            raise ConflictError("You are already a member of this household")

        self._link(invitation, user)
        invitation.status = InvitationStatus.ACCEPTED
        self.db.add(
            HouseholdMember(
                household_id=invitation.household_id,
                user_id=user.id,
                role=invitation.proposed_role,
            )
        )
        self.db.commit()
        self.db.refresh(invitation)

        logger.info(
            f"User {user.id} accepted invitation {invitation_id} to household "
            f"{invitation.household_id} as {invitation.proposed_role.value}"
        )
        return invitation

    def decline_invitation(self, invitation_id: int, user: User) -> HouseholdInvitation:
        invitation = self._get_invitation(invitation_id)
        self._claim(invitation, user)

        self._link(invitation, user)
        invitation.status = InvitationStatus.DECLINED
        self.db.commit()
        self.db.refresh(invitation)

        logger.info(f"User {user.id} declined invitation {invitation_id}")
        return invitation

    def cancel_invitation(self, household_id: int, invitation_id: int, user: User) -> None:
        """Withdraw a pending invitation. Household ADMIN/OWNER or the inviter only."""
        get_household_or_404(self.db, household_id)
        invitation = self._get_invitation_in_household(household_id, invitation_id)

        membership = find_membership(self.db, household_id, user.id)
        can_manage = membership is not None and membership.role.can_manage()
        if not can_manage and invitation.invited_by_id != user.id:
            raise InsufficientPermissionError("You don't have permission to cancel this invitation")
        if not invitation.is_pending:
            raise ResourceStateError("Cannot cancel processed invitation")

        self.db.delete(invitation)
        self.db.commit()
        logger.info(f"User {user.id} cancelled invitation {invitation_id}")

    def update_invitation(
        self, household_id: int, invitation_id: int, request: InvitationUpdate, user: User
    ) -> HouseholdInvitation:
        if request.proposed_role is not None:
            _validate_proposed_role(request.proposed_role)
        _validate_expiry(request.expires_at, datetime.now(UTC))

        get_household_or_404(self.db, household_id)
        membership = require_membership(
            self.db, household_id, user, "You don't have access to this household"
        )
        require_role(membership, HouseholdRole.ADMIN, "update invitations")

        invitation = self._get_invitation_in_household(household_id, invitation_id)
        if not invitation.is_pending:
            raise ResourceStateError("Cannot update processed invitation")

        if request.proposed_role is not None:
            invitation.proposed_role = request.proposed_role
        if request.expires_at is not None:
            invitation.expires_at = request.expires_at
        self.db.commit()
        self.db.refresh(invitation)
        return invitation

    def resend_invitation(
        self,
        household_id: int,
        invitation_id: int,
        user: User,
        expires_at: datetime | None = None,
    ) -> HouseholdInvitation:
        """Give a pending invitation a fresh expiry, reviving it if it lapsed."""
        now = datetime.now(UTC)
        _validate_expiry(expires_at, now)

        get_household_or_404(self.db, household_id)
        invitation = self._get_invitation_in_household(household_id, invitation_id)

        membership = find_membership(self.db, household_id, user.id)
        can_manage = membership is not None and membership.role.can_manage()
        if not can_manage and invitation.invited_by_id != user.id:
            raise InsufficientPermissionError("You don't have permission to resend this invitation")
        if not invitation.is_pending:
            raise ResourceStateError("Cannot resend processed invitation")

        invitation.expires_at = expires_at or self._default_expiry(now)
        self.db.commit()
        self.db.refresh(invitation)

        logger.info(f"User {user.id} resent invitation {invitation_id} to {invitation.effective_email}")
        return invitation
