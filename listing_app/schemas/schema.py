from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from models.enums import ListingStatus, ListingType, PropertyStatus, PropertyType, UserRole
from policy.listing_policy import ListingPolicy

MIN_PHONE_DIGITS = 10


class UserOut(BaseModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: UserRole
    phone_number: Optional[str] = None
    rera_id: Optional[str] = None
    is_verified: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def rera_verified(self) -> bool:
        return ListingPolicy.has_rera_badge(self.role, self.is_verified, self.rera_id)


class UpdateRoleSchema(BaseModel):
    role: str
    phone_number: str
    rera_id: Optional[str] = None

    @field_validator("phone_number", "rera_id", mode="before")
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @property
    def phone_digits(self) -> int:
        return len(re.sub(r"\D", "", self.phone_number or ""))


class VerificationUpdate(BaseModel):
    is_verified: bool


class PropertyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = ""
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    location: str = Field(..., min_length=1, max_length=255)
    property_type: PropertyType
    listing_type: ListingType
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    image_urls: List[str] = Field(default_factory=list)

    @field_validator("image_urls")
    @classmethod
    def validate_image_urls(cls, value: List[str]):
        cleaned = [v.strip() for v in value]
        if any(not v for v in cleaned):
            raise ValueError("Image references cannot be empty.")
        return cleaned


class PropertySearch(BaseModel):
    location: Optional[str] = None
    property_type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    bedrooms: Optional[int] = None


class ListingStatusUpdate(BaseModel):
    listing_status: str


class AdminStatusUpdate(BaseModel):
    status: str
    is_verified: Optional[bool] = None


class ImageReplaceRequest(BaseModel):
    image_urls: List[str]

    @field_validator("image_urls")
    @classmethod
    def validate_image_urls(cls, value: List[str]):
        cleaned = [v.strip() for v in value]
        if any(not v for v in cleaned):
            raise ValueError("Image references cannot be empty.")
        return cleaned


class ImageOut(BaseModel):
    id: int
    property_id: int
    image_url: str
    display_order: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PropertyBaseOut(BaseModel):
    id: int
    title: str
    description: Optional[str]
    price: Decimal
    location: str
    property_type: PropertyType
    listing_type: ListingType
    bedrooms: Optional[int]
    bathrooms: Optional[int]
    owner_id: str
    status: PropertyStatus
    listing_status: ListingStatus
    is_verified: bool
    needs_review: bool
    last_reviewed_at: Optional[datetime]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def age_days(self) -> int:
        return ListingPolicy.age_in_days(self.created_at)

    @computed_field
    @property
    def review_reminder(self) -> bool:
        return ListingPolicy.needs_status_confirmation(
            self.created_at, self.listing_status
        )

    @computed_field
    @property
    def review_urgent(self) -> bool:
        return ListingPolicy.is_review_urgent(self.created_at, self.listing_status)


class PropertyOut(PropertyBaseOut):
    owner: Optional[UserOut] = None
    images: List[ImageOut] = Field(default_factory=list)


class DuplicateListingOut(BaseModel):
    id: int
    attempted_title: str
    attempted_location: str
    attempted_by_user_id: str
    existing_property_id: int
    attempted_at: datetime
    reviewed: bool

    model_config = {"from_attributes": True}


class ExistingPropertyOut(PropertyBaseOut):
    owner: Optional[UserOut] = None


class DuplicateListingDetailOut(DuplicateListingOut):
    attempted_by: Optional[UserOut] = None
    existing_property: Optional[ExistingPropertyOut] = None
