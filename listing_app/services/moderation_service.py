import logging

from fastapi import HTTPException

from core.breaker import breaker
from core.check_permission import CheckRolePermission
from core.mapper import ORMMapper
from core.validate_enum import validate_enum
from models.enums import PropertyStatus
from policy.listing_policy import ListingPolicy
from repos.property_repo import PropertyRepo
from schemas.schema import AdminStatusUpdate, PropertyOut

logger = logging.getLogger(__name__)


class ModerationService:
    def __init__(self, db):
        self.repo: PropertyRepo = PropertyRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: ORMMapper[PropertyOut] = ORMMapper(PropertyOut)

    async def _get_or_404(self, property_id: int):
        prop = await self.repo.get_by_id(property_id)
        if not prop:
            raise HTTPException(status_code=404, detail="Property not found")
        return prop

    async def get_all(self, current_user) -> list[PropertyOut]:
        async def handler():
            await self.permission.check_admin(current_user=current_user)
            props = await self.repo.get_all_properties()
            return self.mapper.many(props)

        return await breaker.call(handler)

    async def get_pending(self, current_user) -> list[PropertyOut]:
        async def handler():
            await self.permission.check_admin(current_user=current_user)
            props = await self.repo.get_pending()
            return self.mapper.many(props)

        return await breaker.call(handler)

    async def get_needing_review(self, current_user) -> list[PropertyOut]:
        async def handler():
            await self.permission.check_admin(current_user=current_user)
            props = await self.repo.get_needing_review()
            return self.mapper.many(props)

        return await breaker.call(handler)

    async def update_status(
        self, property_id: int, data: AdminStatusUpdate, current_user
    ) -> PropertyOut:
        async def handler():
            await self.permission.check_admin(current_user=current_user)
            try:
                target = validate_enum(data.status, PropertyStatus, field="status")
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            if target == PropertyStatus.PENDING:
                raise HTTPException(
                    status_code=400,
                    detail="Status can only be set to approved or rejected",
                )

            prop = await self._get_or_404(property_id)
            current = prop.status
            if not ListingPolicy.can_set_admin_status(current, target):
                raise HTTPException(
                    status_code=409,
                    detail=f"Property is already {current.value}; moderation status is final",
                )

            await self.repo.update_status(prop, target, is_verified=data.is_verified)
            logger.info(
                f"Admin {current_user.id} set property {property_id} status "
                f"{current.value} -> {target.value} (is_verified={prop.is_verified})"
            )

            prop = await self.repo.get_property_with_relations(property_id)
            return self.mapper.one(prop)

        return await breaker.call(handler)

    async def set_verified(
        self, property_id: int, is_verified: bool, current_user
    ) -> PropertyOut:
        async def handler():
            await self.permission.check_admin(current_user=current_user)
            prop = await self._get_or_404(property_id)

            await self.repo.set_verified(prop, is_verified)
            logger.info(
                f"Admin {current_user.id} set property {property_id} is_verified={is_verified}"
            )

            prop = await self.repo.get_property_with_relations(property_id)
            return self.mapper.one(prop)

        return await breaker.call(handler)

    async def clear_review(self, property_id: int, current_user) -> PropertyOut:
        async def handler():
            await self.permission.check_admin(current_user=current_user)
            prop = await self._get_or_404(property_id)

            await self.repo.clear_review(prop)
            logger.info(f"Admin {current_user.id} cleared review flag on property {property_id}")

            prop = await self.repo.get_property_with_relations(property_id)
            return self.mapper.one(prop)

        return await breaker.call(handler)
