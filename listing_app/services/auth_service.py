import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from core.breaker import breaker
from core.identity import VerifiedIdentity
from core.mapper import ORMMapper
from core.validate_enum import validate_enum
from models.enums import SELF_SERVICE_ROLES, UserRole
from models.models import User
from repos.auth_repo import AuthRepo
from schemas.schema import MIN_PHONE_DIGITS, UpdateRoleSchema, UserOut

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db):
        self.repo: AuthRepo = AuthRepo(db)
        self.mapper: ORMMapper[UserOut] = ORMMapper(UserOut)

    async def resolve_identity(self, identity: VerifiedIdentity) -> User:
        async def handler():
            user = await self.repo.by_id(identity.uid)
            if user:
                return user

            new_user = User(
                id=identity.uid,
                email=await self._claimable_email(identity),
                first_name=identity.first_name,
                last_name=identity.last_name,
                profile_image_url=identity.picture,
                role=UserRole.TENANT,
                is_verified=False,
            )
            try:
                user = await self.repo.create(new_user)
            except IntegrityError:
                # a concurrent sign-in created this uid or claimed the email
                user = await self.repo.by_id(identity.uid)
                if user is None:
                    raise HTTPException(
                        status_code=409,
                        detail="Account setup conflicted with another sign-in, please retry",
                    )
                return user

            logger.info(f"Created user {user.id} on first sight with role tenant")
            return user

        return await breaker.call(handler)

    async def _claimable_email(self, identity: VerifiedIdentity) -> str | None:
        if not identity.email or not identity.email_verified:
            return None
        holder = await self.repo.by_email(identity.email)
        if holder:
            # provider accounts recreated under a new uid keep their old email
            logger.warning(
                f"Email of new user {identity.uid} already belongs to user {holder.id}; stored without email"
            )
            return None
        return identity.email

    async def get_me(self, current_user: User) -> UserOut:
        return self.mapper.one(current_user)

    async def update_role(self, current_user: User, data: UpdateRoleSchema) -> UserOut:
        async def handler():
            if not data.role or not data.phone_number:
                raise HTTPException(
                    status_code=400, detail="Role and phone number are required"
                )
            try:
                role = validate_enum(data.role, UserRole, field="role")
            except ValueError:
                raise HTTPException(status_code=400, detail="Invalid role")
            if role not in SELF_SERVICE_ROLES:
                raise HTTPException(status_code=400, detail="Invalid role")

            if data.phone_digits < MIN_PHONE_DIGITS:
                raise HTTPException(
                    status_code=400,
                    detail=f"Phone number must be at least {MIN_PHONE_DIGITS} digits",
                )

            if role == UserRole.BROKER and not data.rera_id:
                raise HTTPException(
                    status_code=400,
                    detail="RERA Registration Number is required for brokers",
                )

            user = await self.repo.by_id(current_user.id)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")

            previous_role = user.role
            user.role = role
            user.phone_number = data.phone_number

            if role == UserRole.BROKER:
                user.rera_id = data.rera_id
                user.is_verified = False

            updated = await self.repo.update(user)
            logger.info(
                f"User {updated.id} changed role {previous_role.value} -> {role.value}"
            )
            return self.mapper.one(updated)

        return await breaker.call(handler)
