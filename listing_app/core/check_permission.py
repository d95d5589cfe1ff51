from fastapi import HTTPException

from models.enums import UserRole

LISTING_ROLES = {UserRole.LANDLORD, UserRole.BROKER}


class CheckRolePermission:
    async def check_admin(self, current_user):
        if current_user.role != UserRole.ADMIN:
            raise HTTPException(status_code=403, detail="Admin access required")

    async def check_lister(self, current_user):
        if current_user.role not in LISTING_ROLES:
            raise HTTPException(
                status_code=403,
                detail="Only landlords and brokers can manage listings",
            )

    async def check_self(self, current_user, user_id: str):
        if current_user.id != user_id:
            raise HTTPException(status_code=403, detail="Unauthorized")
