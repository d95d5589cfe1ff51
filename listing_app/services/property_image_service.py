import logging

from fastapi import HTTPException

from core.breaker import breaker
from core.mapper import ORMMapper
from core.settings import settings
from policy.listing_policy import ListingPolicy
from repos.property_image_repo import PropertyImageRepo
from repos.property_repo import PropertyRepo
from schemas.schema import ImageOut, ImageReplaceRequest

logger = logging.getLogger(__name__)


class PropertyImageService:
    def __init__(self, db):
        self.repo: PropertyImageRepo = PropertyImageRepo(db)
        self.property_repo: PropertyRepo = PropertyRepo(db)
        self.mapper: ORMMapper[ImageOut] = ORMMapper(ImageOut)

    async def get_images(self, property_id: int) -> list[ImageOut]:
        async def handler():
            prop = await self.property_repo.get_by_id(property_id)
            if not prop:
                raise HTTPException(status_code=404, detail="Property not found")
            images = await self.repo.get_all(property_id)
            return self.mapper.many(images)

        return await breaker.call(handler)

    async def replace_images(
        self, property_id: int, data: ImageReplaceRequest, current_user
    ) -> list[ImageOut]:
        async def handler():
            prop = await self.property_repo.get_by_id(property_id)
            if not prop:
                raise HTTPException(status_code=404, detail="Property not found")
            if not ListingPolicy.can_manage_property(prop, current_user):
                raise HTTPException(
                    status_code=403,
                    detail="Only the property owner can change its images",
                )
            if len(data.image_urls) > settings.MAX_IMAGES_PER_PROPERTY:
                raise HTTPException(
                    status_code=400,
                    detail=f"A property can have at most {settings.MAX_IMAGES_PER_PROPERTY} images",
                )

            user_id = current_user.id
            images = await self.repo.replace_all(property_id, data.image_urls)
            logger.info(
                f"User {user_id} replaced images on property {property_id} ({len(images)} images)"
            )
            return self.mapper.many(images)

        return await breaker.call(handler)
