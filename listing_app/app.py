import logging

import uvicorn
from core.catch_error_middleware import ErrorHandlerMiddleware
from core.exception_handler import ValidationErrorHandler
from core.lifespan import lifespan
from core.settings import settings
from core.throttling import rate_limiter_manager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from routes.admin_routes import router as admin_router
from routes.auth_routes import router as auth_router
from routes.property_image_routes import router as property_image_router
from routes.property_routes import router as property_router

logging.basicConfig(level=settings.LOG_LEVEL)
app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    exception_handlers={429: rate_limiter_manager.limit_exceeded_handler},
    version="1.0.0",
)

prefix = settings.API_PREFIX
app.include_router(auth_router, prefix=f"{prefix}/auth")
app.include_router(property_image_router, prefix=f"{prefix}/properties")
app.include_router(property_router, prefix=f"{prefix}/properties")
app.include_router(admin_router, prefix=f"{prefix}/admin")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["System"])
async def health_check():
    return {"status": "ok"}


app.add_exception_handler(
    RequestValidationError,
    ValidationErrorHandler(),
)

app.add_middleware(ErrorHandlerMiddleware)


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8001)
