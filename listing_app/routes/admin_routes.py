from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from core.throttling import rate_limit
from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from models.models import User
from schemas.schema import (
    AdminStatusUpdate,
    DuplicateListingDetailOut,
    DuplicateListingOut,
    PropertyOut,
    UserOut,
    VerificationUpdate,
)
from services.duplicate_service import DuplicateReviewService
from services.moderation_service import ModerationService
from services.verification_service import BrokerVerificationService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["Admin"])


@cbv(router=router)
class AdminRoutes:
    @router.get("/properties", response_model=list[PropertyOut], dependencies=[rate_limit])
    @safe_handler
    async def all_properties(
        self,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await ModerationService(db).get_all(current_user=current_user)

    @router.get(
        "/properties/pending", response_model=list[PropertyOut], dependencies=[rate_limit]
    )
    @safe_handler
    async def pending_properties(
        self,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await ModerationService(db).get_pending(current_user=current_user)

    @router.get(
        "/properties/review", response_model=list[PropertyOut], dependencies=[rate_limit]
    )
    @safe_handler
    async def review_queue(
        self,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await ModerationService(db).get_needing_review(current_user=current_user)

    @router.patch(
        "/properties/{property_id}/status",
        response_model=PropertyOut,
        dependencies=[rate_limit],
    )
    @safe_handler
    async def update_status(
        self,
        property_id: int,
        data: AdminStatusUpdate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await ModerationService(db).update_status(
            property_id=property_id, data=data, current_user=current_user
        )

    @router.patch(
        "/properties/{property_id}/verify",
        response_model=PropertyOut,
        dependencies=[rate_limit],
    )
    @safe_handler
    async def verify_property(
        self,
        property_id: int,
        data: VerificationUpdate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await ModerationService(db).set_verified(
            property_id=property_id,
            is_verified=data.is_verified,
            current_user=current_user,
        )

    @router.patch(
        "/properties/{property_id}/review",
        response_model=PropertyOut,
        dependencies=[rate_limit],
    )
    @safe_handler
    async def clear_review(
        self,
        property_id: int,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await ModerationService(db).clear_review(
            property_id=property_id, current_user=current_user
        )

    @router.get("/brokers/pending", response_model=list[UserOut], dependencies=[rate_limit])
    @safe_handler
    async def pending_brokers(
        self,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await BrokerVerificationService(db).get_pending_brokers(
            current_user=current_user
        )

    @router.patch(
        "/brokers/{broker_id}/verify", response_model=UserOut, dependencies=[rate_limit]
    )
    @safe_handler
    async def verify_broker(
        self,
        broker_id: str,
        data: VerificationUpdate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await BrokerVerificationService(db).verify_broker(
            broker_id=broker_id,
            is_verified=data.is_verified,
            current_user=current_user,
        )

    @router.get(
        "/duplicates",
        response_model=list[DuplicateListingDetailOut],
        dependencies=[rate_limit],
    )
    @safe_handler
    async def duplicates(
        self,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await DuplicateReviewService(db).get_unreviewed(current_user=current_user)

    @router.patch(
        "/duplicates/{duplicate_id}/review",
        response_model=DuplicateListingOut,
        dependencies=[rate_limit],
    )
    @safe_handler
    async def review_duplicate(
        self,
        duplicate_id: int,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await DuplicateReviewService(db).mark_reviewed(
            duplicate_id=duplicate_id, current_user=current_user
        )
