from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from models.models import User
from services.auth_service import AuthService

from .get_db import get_db_async
from .identity import (
    FirebaseIdentityClient,
    InvalidIdentityToken,
    VerifiedIdentity,
    get_identity_client,
)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_verified_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    identity_client: FirebaseIdentityClient = Depends(get_identity_client),
) -> VerifiedIdentity:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=401, detail="No valid authorization header found"
        )
    try:
        return await identity_client.verify(credentials.credentials)
    except InvalidIdentityToken as e:
        raise HTTPException(status_code=401, detail=str(e))


async def get_current_user(
    identity: VerifiedIdentity = Depends(get_verified_identity),
    db: AsyncSession = Depends(get_db_async),
) -> User:
    return await AuthService(db).resolve_identity(identity)
