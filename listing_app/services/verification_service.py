import logging

from fastapi import HTTPException

from core.breaker import breaker
from core.check_permission import CheckRolePermission
from core.mapper import ORMMapper
from models.enums import UserRole
from repos.auth_repo import AuthRepo
from schemas.schema import UserOut

logger = logging.getLogger(__name__)


class BrokerVerificationService:
    def __init__(self, db):
        self.repo: AuthRepo = AuthRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: ORMMapper[UserOut] = ORMMapper(UserOut)

    async def get_pending_brokers(self, current_user) -> list[UserOut]:
        async def handler():
            await self.permission.check_admin(current_user=current_user)
            brokers = await self.repo.get_pending_brokers()
            return self.mapper.many(brokers)

        return await breaker.call(handler)

    async def verify_broker(
        self, broker_id: str, is_verified: bool, current_user
    ) -> UserOut:
        async def handler():
            await self.permission.check_admin(current_user=current_user)
            broker = await self.repo.by_id(broker_id)
            if not broker:
                raise HTTPException(status_code=404, detail="User not found")
            if broker.role != UserRole.BROKER:
                raise HTTPException(status_code=400, detail="User is not a broker")
            if is_verified and not (broker.rera_id or "").strip():
                raise HTTPException(
                    status_code=400,
                    detail="Broker has no RERA Registration Number to verify",
                )

            updated = await self.repo.set_verification(broker, is_verified)
            logger.info(
                f"Admin {current_user.id} set broker {broker_id} is_verified={is_verified}"
            )
            return self.mapper.one(updated)

        return await breaker.call(handler)
