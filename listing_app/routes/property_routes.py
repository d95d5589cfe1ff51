from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from core.throttling import rate_limit
from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from models.models import User
from schemas.schema import (
    ListingStatusUpdate,
    PropertyCreate,
    PropertyOut,
    PropertySearch,
)
from services.property_service import PropertyService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["Property Management"])


@cbv(router=router)
class PropertyRoutes:
    @router.post(
        "/", response_model=PropertyOut, status_code=201, dependencies=[rate_limit]
    )
    @safe_handler
    async def create(
        self,
        data: PropertyCreate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyService(db).create_property(
            data=data, current_user=current_user
        )

    @router.get("/", response_model=list[PropertyOut], dependencies=[rate_limit])
    @safe_handler
    async def feed(self, db: AsyncSession = Depends(get_db_async)):
        return await PropertyService(db).get_feed()

    @router.get("/search", response_model=list[PropertyOut], dependencies=[rate_limit])
    @safe_handler
    async def search(
        self,
        filters: PropertySearch = Depends(),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PropertyService(db).search(filters=filters)

    @router.get(
        "/owner/{owner_id}", response_model=list[PropertyOut], dependencies=[rate_limit]
    )
    @safe_handler
    async def by_owner(
        self,
        owner_id: str,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyService(db).get_by_owner(
            owner_id=owner_id, current_user=current_user
        )

    @router.get("/{property_id}", response_model=PropertyOut, dependencies=[rate_limit])
    @safe_handler
    async def get_one(
        self,
        property_id: int,
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PropertyService(db).get_property(property_id=property_id)

    @router.patch(
        "/{property_id}/status", response_model=PropertyOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def update_listing_status(
        self,
        property_id: int,
        data: ListingStatusUpdate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyService(db).update_listing_status(
            property_id=property_id, data=data, current_user=current_user
        )

    @router.patch(
        "/{property_id}/flag-review",
        response_model=PropertyOut,
        dependencies=[rate_limit],
    )
    @safe_handler
    async def flag_for_review(
        self,
        property_id: int,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyService(db).flag_for_review(
            property_id=property_id, current_user=current_user
        )
