import logging

from fastapi import HTTPException

from core.breaker import breaker
from core.check_permission import CheckRolePermission
from core.mapper import ORMMapper
from models.models import Property
from repos.duplicate_listing_repo import DuplicateListingRepo
from repos.property_repo import PropertyRepo
from schemas.schema import DuplicateListingDetailOut, DuplicateListingOut

logger = logging.getLogger(__name__)

DUPLICATE_DETAIL = (
    "A property with this title and location is already listed. "
    "The attempt has been recorded for admin review."
)


class DuplicateDetector:
    """Exact (title, location) match against active listings.

    A hit is written to the duplicate_listings audit table before the
    creation is rejected with 409.
    """

    def __init__(self, db):
        self.repo: DuplicateListingRepo = DuplicateListingRepo(db)
        self.property_repo: PropertyRepo = PropertyRepo(db)

    async def find_collision(self, title: str, location: str) -> Property | None:
        return await self.property_repo.find_active_duplicate(
            title=title, location=location
        )

    async def reject(self, title: str, location: str, user_id: str, existing: Property):
        attempt = await self.repo.create(
            attempted_title=title,
            attempted_location=location,
            attempted_by_user_id=user_id,
            existing_property_id=existing.id,
        )
        logger.warning(
            f"Duplicate listing attempt {attempt.id} by user {user_id}: "
            f"'{title}' at '{location}' collides with property {existing.id}"
        )
        raise HTTPException(status_code=409, detail=DUPLICATE_DETAIL)

    async def guard(self, title: str, location: str, user_id: str):
        existing = await self.find_collision(title, location)
        if existing:
            await self.reject(title, location, user_id, existing)


class DuplicateReviewService:
    def __init__(self, db):
        self.repo: DuplicateListingRepo = DuplicateListingRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: ORMMapper[DuplicateListingOut] = ORMMapper(DuplicateListingOut)
        self.detail_mapper: ORMMapper[DuplicateListingDetailOut] = ORMMapper(
            DuplicateListingDetailOut
        )

    async def get_unreviewed(self, current_user) -> list[DuplicateListingDetailOut]:
        async def handler():
            await self.permission.check_admin(current_user=current_user)
            attempts = await self.repo.get_unreviewed_with_details()
            return self.detail_mapper.many(attempts)

        return await breaker.call(handler)

    async def mark_reviewed(self, duplicate_id: int, current_user) -> DuplicateListingOut:
        async def handler():
            await self.permission.check_admin(current_user=current_user)
            attempt = await self.repo.get_by_id(duplicate_id)
            if not attempt:
                raise HTTPException(
                    status_code=404, detail="Duplicate listing record not found"
                )
            if attempt.reviewed:
                return self.mapper.one(attempt)

            attempt = await self.repo.mark_reviewed(attempt)
            logger.info(
                f"Admin {current_user.id} marked duplicate attempt {duplicate_id} reviewed"
            )
            return self.mapper.one(attempt)

        return await breaker.call(handler)
