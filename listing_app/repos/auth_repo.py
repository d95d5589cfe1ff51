from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from models.enums import UserRole
from models.models import User


class AuthRepo:
    def __init__(self, db):
        self.db = db

    async def by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_pending_brokers(self) -> list[User]:
        result = await self.db.execute(
            select(User)
            .where(User.role == UserRole.BROKER, User.is_verified.is_(False))
            .order_by(User.created_at)
        )
        return result.scalars().all()

    async def create(self, user: User) -> User:
        self.db.add(user)
        return await self._commit_and_refresh(user)

    async def update(self, user: User) -> User:
        if user.id is None:
            raise ValueError("update() called with no ID, use create() instead")

        self.db.add(user)
        return await self._commit_and_refresh(user)

    async def set_verification(self, user: User, is_verified: bool) -> User:
        user.is_verified = is_verified
        return await self._commit_and_refresh(user)

    async def _commit_and_refresh(self, user: User) -> User:
        try:
            await self.db.commit()
            await self.db.refresh(user)
            return user
        except SQLAlchemyError:
            await self.db.rollback()
            raise
