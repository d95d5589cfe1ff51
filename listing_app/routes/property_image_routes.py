from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from core.throttling import rate_limit
from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from models.models import User
from schemas.schema import ImageOut, ImageReplaceRequest
from services.property_image_service import PropertyImageService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["Property Images"])


@cbv(router=router)
class PropertyImageRoutes:
    @router.get(
        "/{property_id}/images", response_model=list[ImageOut], dependencies=[rate_limit]
    )
    @safe_handler
    async def list_images(
        self,
        property_id: int,
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PropertyImageService(db).get_images(property_id=property_id)

    @router.put(
        "/{property_id}/images", response_model=list[ImageOut], dependencies=[rate_limit]
    )
    @safe_handler
    async def replace_images(
        self,
        property_id: int,
        data: ImageReplaceRequest,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await PropertyImageService(db).replace_images(
            property_id=property_id, data=data, current_user=current_user
        )
