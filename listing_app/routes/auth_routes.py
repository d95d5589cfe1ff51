from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from core.throttling import rate_limit
from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from models.models import User
from schemas.schema import UpdateRoleSchema, UserOut
from services.auth_service import AuthService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["Identity"])


@cbv(router=router)
class AuthRoutes:
    @router.get("/user", response_model=UserOut, dependencies=[rate_limit])
    @safe_handler
    async def get_user(
        self,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await AuthService(db).get_me(current_user=current_user)

    @router.post("/update-role", response_model=UserOut, dependencies=[rate_limit])
    @safe_handler
    async def update_role(
        self,
        data: UpdateRoleSchema,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await AuthService(db).update_role(current_user=current_user, data=data)
