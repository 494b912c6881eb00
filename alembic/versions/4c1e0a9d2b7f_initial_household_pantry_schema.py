"""Initial household pantry schema

Revision ID: 4c1e0a9d2b7f
Revises:
Create Date: 2026-10-17 09:12:44.108312

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4c1e0a9d2b7f"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=True),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), server_default="USER", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("username"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "households",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_households_id", "households", ["id"])

    op.create_table(
        "household_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("household_id", sa.Integer(), sa.ForeignKey("households.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("household_id", "user_id", name="uq_household_member_user"),
    )
    op.create_index("ix_household_members_id", "household_members", ["id"])
    op.create_index("ix_household_members_household_id", "household_members", ["household_id"])
    op.create_index("ix_household_members_user_id", "household_members", ["user_id"])

    op.create_table(
        "household_invitations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("household_id", sa.Integer(), sa.ForeignKey("households.id"), nullable=False),
        sa.Column("invited_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("invited_email", sa.String(length=255), nullable=True),
        sa.Column("invited_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("proposed_role", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "(invited_user_id IS NULL) <> (invited_email IS NULL)",
            name="ck_invitation_single_recipient",
        ),
    )
    op.create_index("ix_household_invitations_id", "household_invitations", ["id"])
    op.create_index(
        "ix_household_invitations_household_id", "household_invitations", ["household_id"]
    )
    op.create_index(
        "ix_household_invitations_invited_user_id", "household_invitations", ["invited_user_id"]
    )
    op.create_index(
        "ix_household_invitations_invited_email", "household_invitations", ["invited_email"]
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("upc", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("brand", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=255), nullable=True),
        sa.Column("default_expiration_days", sa.Integer(), nullable=True),
        sa.Column("data_source", sa.String(length=30), nullable=False),
        sa.Column("requires_api_retry", sa.Boolean(), nullable=False),
        sa.Column("retry_attempts", sa.Integer(), nullable=False),
        sa.Column("last_retry_attempt", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_products_id", "products", ["id"])
    op.create_index("ix_products_upc", "products", ["upc"], unique=True)

    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("household_id", sa.Integer(), sa.ForeignKey("households.id"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("household_id", "name", name="uq_location_household_name"),
    )
    op.create_index("ix_locations_id", "locations", ["id"])
    op.create_index("ix_locations_household_id", "locations", ["household_id"])

    op.create_table(
        "pantry_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("location_id", sa.Integer(), sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("expiration_date", sa.Date(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=True),
        sa.Column("unit_of_measure", sa.String(length=50), nullable=True),
        sa.Column("notes", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "location_id", "product_id", "expiration_date", name="uq_pantry_item_identity"
        ),
    )
    op.create_index("ix_pantry_items_id", "pantry_items", ["id"])
    op.create_index("ix_pantry_items_product_id", "pantry_items", ["product_id"])
    op.create_index("ix_pantry_items_location_id", "pantry_items", ["location_id"])
    op.create_index("ix_pantry_items_expiration_date", "pantry_items", ["expiration_date"])


def downgrade() -> None:
    op.drop_table("pantry_items")
    op.drop_table("locations")
    op.drop_table("products")
    op.drop_table("household_invitations")
    op.drop_table("household_members")
    op.drop_table("households")
    op.drop_table("users")
