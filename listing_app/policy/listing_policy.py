import math
from datetime import datetime

from core.settings import settings
from models.enums import ListingStatus, PropertyStatus, UserRole
from models.models import Property, User
from models.utils import utcnow

SECONDS_PER_DAY = 86400

LISTING_TRANSITIONS = {
    ListingStatus.ACTIVE: {
        ListingStatus.SOLD,
        ListingStatus.RENTED,
        ListingStatus.INACTIVE,
    },
    ListingStatus.SOLD: {ListingStatus.ACTIVE},
    ListingStatus.RENTED: {ListingStatus.ACTIVE},
    ListingStatus.INACTIVE: {ListingStatus.ACTIVE},
}


class ListingPolicy:
    @staticmethod
    def age_in_days(created_at: datetime | None, now: datetime | None = None) -> int:
        """Whole days since creation, rounded up."""
        if created_at is None:
            return 0
        now = now or utcnow()
        elapsed = (now - created_at).total_seconds()
        return max(math.ceil(elapsed / SECONDS_PER_DAY), 0)

    @staticmethod
    def needs_status_confirmation(
        created_at: datetime | None,
        listing_status: ListingStatus,
        now: datetime | None = None,
    ) -> bool:
        if listing_status != ListingStatus.ACTIVE:
            return False
        return ListingPolicy.age_in_days(created_at, now) > settings.STALE_LISTING_DAYS

    @staticmethod
    def is_review_urgent(
        created_at: datetime | None,
        listing_status: ListingStatus,
        now: datetime | None = None,
    ) -> bool:
        if listing_status != ListingStatus.ACTIVE:
            return False
        return ListingPolicy.age_in_days(created_at, now) > settings.URGENT_LISTING_DAYS

    @staticmethod
    def has_rera_badge(role: UserRole | None, is_verified: bool, rera_id: str | None) -> bool:
        return (
            role == UserRole.BROKER
            and bool(is_verified)
            and bool((rera_id or "").strip())
        )

    @staticmethod
    def can_change_listing_status(current: ListingStatus, target: ListingStatus) -> bool:
        if current == target:
            return True
        return target in LISTING_TRANSITIONS[current]

    @staticmethod
    def can_set_admin_status(current: PropertyStatus, target: PropertyStatus) -> bool:
        if target == PropertyStatus.PENDING:
            return False
        return current == PropertyStatus.PENDING or current == target

    @staticmethod
    def can_manage_property(property: Property, user: User) -> bool:
        return property.owner_id == user.id

    @staticmethod
    def can_flag_for_review(property: Property, user: User) -> bool:
        return user.role == UserRole.ADMIN or property.owner_id == user.id
