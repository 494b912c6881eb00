"""Household invitation model."""

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from larder.database import Base
from larder.models.enums import HouseholdRole, InvitationStatus
from larder.models.mixins import TimestampMixin


@dataclass(frozen=True)
class UserRecipient:
    """Invitation addressed to an existing account."""

    user_id: int
    email: str


@dataclass(frozen=True)
class EmailRecipient:
    """Invitation addressed to an email with no account yet."""

    email: str


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class HouseholdInvitation(Base, TimestampMixin):
    """Invitation for a user (or a bare email) to join a household.

    Exactly one of ``invited_user_id`` and ``invited_email`` is set. Linking an
    email-only invitation to an account is one-way.
    """

    __tablename__ = "household_invitations"
    __table_args__ = (
        CheckConstraint(
            "(invited_user_id IS NULL) <> (invited_email IS NULL)",
            name="ck_invitation_single_recipient",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    household_id = Column(Integer, ForeignKey("households.id"), nullable=False, index=True)
    invited_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    invited_email = Column(String(255), nullable=True, index=True)  # lowercase
    invited_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    proposed_role = Column(Enum(HouseholdRole, native_enum=False, length=20), nullable=False)
    status = Column(
        Enum(InvitationStatus, native_enum=False, length=20),
        nullable=False,
        default=InvitationStatus.PENDING,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    household = relationship("Household", back_populates="invitations")
    invited_user = relationship("User", foreign_keys=[invited_user_id])
    invited_by = relationship("User", foreign_keys=[invited_by_id])

    @property
    def recipient(self) -> UserRecipient | EmailRecipient:
        if self.invited_user_id is not None:
            return UserRecipient(user_id=self.invited_user_id, email=self.invited_user.email)
        return EmailRecipient(email=self.invited_email)

    @property
    def effective_email(self) -> str:
        return self.recipient.email

    @property
    def is_email_only(self) -> bool:
        return isinstance(self.recipient, EmailRecipient)

    @property
    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        return as_utc(self.expires_at) < now

    def is_addressed_to(self, user) -> bool:
        """Check whether ``user`` is the recipient, by account or by email."""
        recipient = self.recipient
        if isinstance(recipient, UserRecipient):
            return recipient.user_id == user.id
        return bool(user.email) and user.email.lower() == recipient.email.lower()

    def link_to(self, user) -> None:
        """Bind an email-only invitation to the matching account."""
        self.invited_user = user
        self.invited_user_id = user.id
        self.invited_email = None
