import hashlib
import logging

from fastapi import Depends, Request, Response
from fastapi.responses import JSONResponse
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from redis.asyncio import from_url

from .settings import settings

logger = logging.getLogger(__name__)


class RateLimitManager:
    def __init__(self):
        self.redis = None
        self.ready = False

    async def connect(self):
        self.redis = from_url(
            settings.RATE_LIMIT_REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
        await FastAPILimiter.init(self.redis)
        self.ready = True
        logger.info("Rate limiter initialized.")

    async def close(self):
        self.ready = False
        if self.redis is not None:
            await self.redis.close()
            self.redis = None

    @staticmethod
    async def limit_exceeded_handler(request: Request, exc):
        return JSONResponse(
            status_code=429,
            content={"detail": "Limit exceeded. Please try again later."},
        )

    async def user_or_ip(self, request: Request) -> str:
        auth_header = request.headers.get("authorization", "")
        if auth_header.startswith("Bearer "):
            digest = hashlib.sha256(auth_header[7:].encode()).hexdigest()[:32]
            return f"token:{digest}:{request.scope['path']}"

        if request.client and request.client.host:
            return f"ip:{request.client.host}:{request.scope['path']}"

        return "anonymous"


rate_limiter_manager = RateLimitManager()


class ServiceRateLimiter(RateLimiter):
    # requests pass unthrottled until the limiter backend has connected
    async def __call__(self, request: Request, response: Response):
        if not rate_limiter_manager.ready:
            return
        await super().__call__(request, response)


rate_limit = Depends(
    ServiceRateLimiter(
        times=settings.RATE_LIMIT_TIMES,
        seconds=settings.RATE_LIMIT_SECONDS,
        identifier=rate_limiter_manager.user_or_ip,
    )
)
