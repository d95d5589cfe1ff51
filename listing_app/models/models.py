from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.get_db import Base

from .enums import ListingStatus, ListingType, PropertyStatus, PropertyType, UserRole
from .utils import enum_column, utcnow

ACTIVE_LISTING_CLAUSE = text("listing_status = 'active'")


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String, unique=True, nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    profile_image_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    role: Mapped[UserRole] = mapped_column(
        enum_column(UserRole), nullable=False, default=UserRole.TENANT
    )
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    rera_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    properties: Mapped[List["Property"]] = relationship(
        "Property", back_populates="owner", foreign_keys="Property.owner_id"
    )
    duplicate_attempts: Mapped[List["DuplicateListing"]] = relationship(
        "DuplicateListing", back_populates="attempted_by"
    )

    def __repr__(self):
        return f"<User id={self.id} role={self.role}>"


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    property_type: Mapped[PropertyType] = mapped_column(
        enum_column(PropertyType), nullable=False
    )
    listing_type: Mapped[ListingType] = mapped_column(
        enum_column(ListingType), nullable=False
    )
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer)

    owner_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    owner: Mapped["User"] = relationship(
        "User", back_populates="properties", foreign_keys=[owner_id]
    )

    status: Mapped[PropertyStatus] = mapped_column(
        enum_column(PropertyStatus),
        nullable=False,
        default=PropertyStatus.PENDING,
        index=True,
    )
    listing_status: Mapped[ListingStatus] = mapped_column(
        enum_column(ListingStatus),
        nullable=False,
        default=ListingStatus.ACTIVE,
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    needs_review: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="PropertyImage.display_order",
    )

    __table_args__ = (
        # one active listing per (title, location); closes the check-then-insert race
        Index(
            "uq_properties_active_title_location",
            "title",
            "location",
            unique=True,
            postgresql_where=ACTIVE_LISTING_CLAUSE,
            sqlite_where=ACTIVE_LISTING_CLAUSE,
        ),
        Index("idx_properties_status_listing", "status", "listing_status"),
    )

    def __repr__(self):
        return f"<Property id={self.id} status={self.status} listing={self.listing_status}>"


class PropertyImage(Base):
    __tablename__ = "property_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    property: Mapped["Property"] = relationship("Property", back_populates="images")

    image_url: Mapped[str] = mapped_column(String(512), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    def __repr__(self):
        return f"<PropertyImage property={self.property_id} order={self.display_order}>"


class DuplicateListing(Base):
    __tablename__ = "duplicate_listings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    attempted_title: Mapped[str] = mapped_column(String(255), nullable=False)
    attempted_location: Mapped[str] = mapped_column(String(255), nullable=False)
    attempted_by_user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id"), nullable=False, index=True
    )
    attempted_by: Mapped["User"] = relationship(
        "User", back_populates="duplicate_attempts"
    )
    existing_property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id"), nullable=False, index=True
    )
    existing_property: Mapped["Property"] = relationship("Property")
    attempted_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    reviewed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<DuplicateListing id={self.id} existing={self.existing_property_id}>"


class AuthSession(Base):
    """Opaque session rows owned by the identity layer."""

    __tablename__ = "sessions"

    sid: Mapped[str] = mapped_column(String, primary_key=True)
    sess: Mapped[dict] = mapped_column(JSON, nullable=False)
    expire: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
