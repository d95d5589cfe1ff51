import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .get_db import async_engine
from .identity import FirebaseIdentityClient
from .settings import settings
from .throttling import rate_limiter_manager

logger = logging.getLogger("startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Waiting for application startup...")

    if not settings.FIREBASE_PROJECT_ID:
        logger.warning("FIREBASE_PROJECT_ID is not set; every token will be rejected")
    app.state.identity = FirebaseIdentityClient(project_id=settings.FIREBASE_PROJECT_ID)

    try:
        await rate_limiter_manager.connect()
    except Exception:
        logger.exception("Rate limiter connection failed")

    logger.info("Application startup complete.")

    yield

    app.state.identity.close()
    try:
        await rate_limiter_manager.close()
    except Exception:
        logger.exception("Failed to close rate limiter connection")
    await async_engine.dispose()
