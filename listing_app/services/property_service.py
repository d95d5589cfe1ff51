import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from core.breaker import breaker
from core.check_permission import CheckRolePermission
from core.mapper import ORMMapper
from core.settings import settings
from core.validate_enum import validate_enum
from models.enums import ListingStatus, PropertyStatus
from policy.listing_policy import ListingPolicy
from repos.property_repo import PropertyRepo
from schemas.schema import ListingStatusUpdate, PropertyCreate, PropertyOut, PropertySearch
from services.duplicate_service import DuplicateDetector

logger = logging.getLogger(__name__)


class PropertyService:
    def __init__(self, db):
        self.repo: PropertyRepo = PropertyRepo(db)
        self.detector: DuplicateDetector = DuplicateDetector(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: ORMMapper[PropertyOut] = ORMMapper(PropertyOut)

    async def get_or_404(self, property_id: int):
        prop = await self.repo.get_by_id(property_id)
        if not prop:
            raise HTTPException(status_code=404, detail="Property not found")
        return prop

    async def create_property(self, data: PropertyCreate, current_user) -> PropertyOut:
        async def handler():
            await self.permission.check_lister(current_user=current_user)
            # a rollback expires the session's objects, so read the id up front
            user_id = current_user.id

            if len(data.image_urls) > settings.MAX_IMAGES_PER_PROPERTY:
                raise HTTPException(
                    status_code=400,
                    detail=f"A property can have at most {settings.MAX_IMAGES_PER_PROPERTY} images",
                )

            await self.detector.guard(data.title, data.location, user_id)

            try:
                new_prop = await self.repo.create_first(
                    owner_id=user_id,
                    title=data.title,
                    description=data.description,
                    price=data.price,
                    location=data.location,
                    property_type=data.property_type,
                    listing_type=data.listing_type,
                    bedrooms=data.bedrooms,
                    bathrooms=data.bathrooms,
                    image_urls=data.image_urls,
                )
            except IntegrityError:
                # lost the race against a concurrent insert of the same listing
                existing = await self.detector.find_collision(data.title, data.location)
                if existing is None:
                    raise
                await self.detector.reject(data.title, data.location, user_id, existing)

            logger.info(
                f"User {user_id} created property {new_prop.id} ('{new_prop.title}'), pending moderation"
            )
            prop = await self.repo.get_property_with_relations(new_prop.id)
            return self.mapper.one(prop)

        return await breaker.call(handler)

    async def get_feed(self) -> list[PropertyOut]:
        async def handler():
            props = await self.repo.get_approved_active()
            return self.mapper.many(props)

        return await breaker.call(handler)

    async def search(self, filters: PropertySearch) -> list[PropertyOut]:
        async def handler():
            if (
                filters.min_price is not None
                and filters.max_price is not None
                and filters.min_price > filters.max_price
            ):
                raise HTTPException(
                    status_code=400,
                    detail="min_price cannot be greater than max_price",
                )
            props = await self.repo.search(
                location=filters.location.strip() if filters.location else None,
                property_type=filters.property_type,
                listing_type=filters.listing_type,
                min_price=filters.min_price,
                max_price=filters.max_price,
                bedrooms=filters.bedrooms,
            )
            return self.mapper.many(props)

        return await breaker.call(handler)

    async def get_property(self, property_id: int) -> PropertyOut:
        async def handler():
            prop = await self.repo.get_property_with_relations(property_id)
            if not prop:
                raise HTTPException(status_code=404, detail="Property not found")
            return self.mapper.one(prop)

        return await breaker.call(handler)

    async def get_by_owner(self, owner_id: str, current_user) -> list[PropertyOut]:
        async def handler():
            await self.permission.check_self(current_user=current_user, user_id=owner_id)
            props = await self.repo.get_all_by_owner(owner_id)
            return self.mapper.many(props)

        return await breaker.call(handler)

    async def update_listing_status(
        self, property_id: int, data: ListingStatusUpdate, current_user
    ) -> PropertyOut:
        async def handler():
            await self.permission.check_lister(current_user=current_user)
            user_id = current_user.id

            prop = await self.get_or_404(property_id)
            if not ListingPolicy.can_manage_property(prop, current_user):
                raise HTTPException(
                    status_code=403,
                    detail="Only the property owner can change its listing status",
                )

            try:
                target = validate_enum(
                    data.listing_status, ListingStatus, field="listing_status"
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

            if prop.status != PropertyStatus.APPROVED:
                raise HTTPException(
                    status_code=409,
                    detail="Listing status can only change once the property is approved",
                )

            current = prop.listing_status
            if not ListingPolicy.can_change_listing_status(current, target):
                raise HTTPException(
                    status_code=409,
                    detail=f"Cannot change listing status from {current.value} to {target.value}",
                )

            if current != target:
                if target == ListingStatus.ACTIVE:
                    clash = await self.repo.find_other_active_duplicate(prop)
                    if clash:
                        raise HTTPException(
                            status_code=409,
                            detail=f"Property {clash.id} with the same title and location is already active",
                        )
                try:
                    await self.repo.update_listing_status(prop, target)
                except IntegrityError:
                    raise HTTPException(
                        status_code=409,
                        detail="Another active property with the same title and location exists",
                    )
                logger.info(
                    f"User {user_id} moved property {property_id} listing status {current.value} -> {target.value}"
                )

            prop = await self.repo.get_property_with_relations(property_id)
            return self.mapper.one(prop)

        return await breaker.call(handler)

    async def flag_for_review(self, property_id: int, current_user) -> PropertyOut:
        async def handler():
            prop = await self.get_or_404(property_id)
            if not ListingPolicy.can_flag_for_review(prop, current_user):
                raise HTTPException(
                    status_code=403,
                    detail="Only the owner or an admin can flag a property for review",
                )

            if not prop.needs_review:
                await self.repo.mark_for_review(prop)
                logger.info(f"User {current_user.id} flagged property {property_id} for review")

            prop = await self.repo.get_property_with_relations(property_id)
            return self.mapper.one(prop)

        return await breaker.call(handler)
