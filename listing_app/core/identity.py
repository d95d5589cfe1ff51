import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_auth_requests
from google.oauth2 import id_token as google_id_token

logger = logging.getLogger(__name__)


class InvalidIdentityToken(Exception):
    pass


@dataclass(frozen=True)
class VerifiedIdentity:
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    email_verified: bool = False

    @property
    def first_name(self) -> str:
        return (self.name or "").split(" ")[0]

    @property
    def last_name(self) -> str:
        return " ".join((self.name or "").split(" ")[1:])


class FirebaseIdentityClient:
    """Verifies Firebase ID tokens against the configured project.

    One instance is built per process in the lifespan and shared through
    ``app.state.identity``.
    """

    def __init__(self, project_id: str | None, max_workers: int = 4):
        self.project_id = project_id
        self._transport = google_auth_requests.Request()
        # verification fetches signing certs over blocking HTTP
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="identity"
        )

    async def verify(self, token: str) -> VerifiedIdentity:
        if not self.project_id:
            raise InvalidIdentityToken("Identity provider is not configured")
        try:
            loop = asyncio.get_running_loop()
            claims = await loop.run_in_executor(
                self._executor,
                google_id_token.verify_firebase_token,
                token,
                self._transport,
                self.project_id,
            )
        except (GoogleAuthError, ValueError) as e:
            logger.info(f"Identity token rejected: {e}")
            raise InvalidIdentityToken("Invalid or expired token") from e

        uid = claims.get("user_id") or claims.get("sub")
        if not uid:
            raise InvalidIdentityToken("Token missing user ID")

        return VerifiedIdentity(
            uid=uid,
            email=claims.get("email"),
            name=claims.get("name"),
            picture=claims.get("picture"),
            email_verified=bool(claims.get("email_verified", False)),
        )

    def close(self):
        self._executor.shutdown(wait=False)
        session = getattr(self._transport, "session", None)
        if session is not None:
            session.close()


def get_identity_client(request: Request) -> FirebaseIdentityClient:
    return request.app.state.identity
