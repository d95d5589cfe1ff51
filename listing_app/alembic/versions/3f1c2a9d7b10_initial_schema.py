"""initial schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 10:12:41.508213

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _enum(*values, name):
    return sa.Enum(*values, name=name, native_enum=False, length=20)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("profile_image_url", sa.String(), nullable=True),
        sa.Column(
            "role",
            _enum("tenant", "landlord", "broker", "admin", name="userrole"),
            nullable=False,
        ),
        sa.Column("phone_number", sa.String(length=20), nullable=True),
        sa.Column("rera_id", sa.String(), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column(
            "property_type",
            _enum("apartment", "villa", "house", "office", name="propertytype"),
            nullable=False,
        ),
        sa.Column(
            "listing_type", _enum("rent", "sale", name="listingtype"), nullable=False
        ),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Integer(), nullable=True),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column(
            "status",
            _enum("pending", "approved", "rejected", name="propertystatus"),
            nullable=False,
        ),
        sa.Column(
            "listing_status",
            _enum("active", "sold", "rented", "inactive", name="listingstatus"),
            nullable=False,
        ),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("needs_review", sa.Boolean(), nullable=False),
        sa.Column("last_reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_properties_owner_id", "properties", ["owner_id"])
    op.create_index("ix_properties_status", "properties", ["status"])
    op.create_index(
        "idx_properties_status_listing", "properties", ["status", "listing_status"]
    )
    op.create_index(
        "uq_properties_active_title_location",
        "properties",
        ["title", "location"],
        unique=True,
        postgresql_where=sa.text("listing_status = 'active'"),
        sqlite_where=sa.text("listing_status = 'active'"),
    )

    op.create_table(
        "property_images",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("image_url", sa.String(length=512), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["property_id"], ["properties.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_property_images_property_id", "property_images", ["property_id"]
    )

    op.create_table(
        "duplicate_listings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("attempted_title", sa.String(length=255), nullable=False),
        sa.Column("attempted_location", sa.String(length=255), nullable=False),
        sa.Column("attempted_by_user_id", sa.String(length=128), nullable=False),
        sa.Column("existing_property_id", sa.Integer(), nullable=False),
        sa.Column("attempted_at", sa.DateTime(), nullable=False),
        sa.Column("reviewed", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["attempted_by_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["existing_property_id"], ["properties.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_duplicate_listings_attempted_by_user_id",
        "duplicate_listings",
        ["attempted_by_user_id"],
    )
    op.create_index(
        "ix_duplicate_listings_existing_property_id",
        "duplicate_listings",
        ["existing_property_id"],
    )

    op.create_table(
        "sessions",
        sa.Column("sid", sa.String(), nullable=False),
        sa.Column("sess", sa.JSON(), nullable=False),
        sa.Column("expire", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("sid"),
    )
    op.create_index("ix_sessions_expire", "sessions", ["expire"])


def downgrade():
    op.drop_index("ix_sessions_expire", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index(
        "ix_duplicate_listings_existing_property_id", table_name="duplicate_listings"
    )
    op.drop_index(
        "ix_duplicate_listings_attempted_by_user_id", table_name="duplicate_listings"
    )
    op.drop_table("duplicate_listings")
    op.drop_index("ix_property_images_property_id", table_name="property_images")
    op.drop_table("property_images")
    op.drop_index("uq_properties_active_title_location", table_name="properties")
    op.drop_index("idx_properties_status_listing", table_name="properties")
    op.drop_index("ix_properties_status", table_name="properties")
    op.drop_index("ix_properties_owner_id", table_name="properties")
    op.drop_table("properties")
    op.drop_table("users")
