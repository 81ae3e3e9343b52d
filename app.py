"""
Nomination & Voting API: categories, nominees, votes and reviewed media uploads.
"""
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from database.connection import Database
from storage.s3_client import S3Client
from storage.local_storage import LocalStorage
from core.exceptions import VotingPlatformError
from core.responses import error_response
from core.logger import logger
from middleware.security import (
    RateLimitMiddleware, SecurityHeadersMiddleware,
    setup_cors, setup_trusted_hosts
)
from middleware.auth_middleware import AuthRequiredMiddleware
from services.auth_service import AuthService
from routers.auth import router as auth_router
from routers.users import router as users_router
from routers.categories import router as categories_router
from routers.nominees import router as nominees_router
from routers.votes import router as votes_router
from routers.media import router as media_router


HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    429: "rate_limited",
}


def build_database() -> Database:
    return Database(
        database_url=config.DATABASE_URL,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW
    )


def build_s3_storage() -> S3Client:
    return S3Client(
        bucket_name=config.S3_BUCKET_NAME,
        aws_access_key_id=config.S3_ACCESS_KEY_ID,
        aws_secret_access_key=config.S3_SECRET_ACCESS_KEY,
        region_name=config.S3_REGION,
        endpoint_url=config.S3_ENDPOINT_URL,
        presigned_expires=config.S3_PRESIGNED_URL_EXPIRES,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the database handle (unless one was injected), create tables,
    seed the admin account and make sure object storage is reachable.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {config.APP_NAME} v{config.APP_VERSION}...")
    logger.info("=" * 60)

    if getattr(app.state, "db", None) is None:
        app.state.db = build_database()
    database = app.state.db

    try:
        database.create_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        raise

    if getattr(app.state, "storage", None) is None:
        try:
            app.state.storage = build_s3_storage()
        except Exception as e:
            logger.error(f"Failed to initialize S3 client: {e}", exc_info=True)
            raise

    if config.ENSURE_ADMIN_ON_STARTUP:
        try:
            with database.get_session() as db:
                AuthService.ensure_admin_user(db)
        except VotingPlatformError as e:
            logger.error(f"Could not ensure admin user: {e.message}")

    logger.info(f"Environment: {config.ENVIRONMENT}")
    logger.info("Server ready!")

    yield

    logger.info("Shutting down...")
    database.dispose()
    logger.info("Database connections closed")


def register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves the API as a {success: false, message, error} envelope."""

    @app.exception_handler(VotingPlatformError)
    async def domain_error_handler(request: Request, exc: VotingPlatformError):
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return error_response(exc.status_code, exc.message, error=exc.error_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        return error_response(400, message, error="validation_error")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(
            exc.status_code,
            str(exc.detail),
            error=HTTP_ERROR_CODES.get(exc.status_code, "http_error"),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return error_response(500, "Internal server error", error="unexpected")


def create_app(database: Optional[Database] = None, storage=None) -> FastAPI:
    """
    Build the application.

    ``database`` and ``storage`` may be injected (tests do this); otherwise the
    database and, with USE_S3, the S3 client are created in the lifespan from
    config. Without USE_S3, files go to a LocalStorage under UPLOADS_DIR.
    """
    if storage is None and not config.USE_S3:
        storage = LocalStorage(config.UPLOADS_DIR)

    app = FastAPI(
        title=config.APP_NAME,
        description="Nomination and voting API with reviewed media uploads",
        version=config.APP_VERSION,
        lifespan=lifespan
    )
    app.state.db = database
    app.state.storage = storage

    app.add_middleware(SecurityHeadersMiddleware, hsts=config.ENVIRONMENT == "production")
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=config.RATE_LIMIT_PER_MINUTE,
        requests_per_hour=config.RATE_LIMIT_PER_HOUR
    )
    app.add_middleware(AuthRequiredMiddleware)
    setup_cors(app, config.CORS_ORIGINS)
    if config.ENVIRONMENT == "production":
        setup_trusted_hosts(app, config.TRUSTED_HOSTS)

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(categories_router)
    app.include_router(nominees_router)
    app.include_router(votes_router)
    app.include_router(media_router)

    if isinstance(storage, LocalStorage):
        app.mount(storage.url_prefix, StaticFiles(directory=str(storage.root), check_dir=False), name="uploads")

    @app.get("/")
    async def root():
        """Root endpoint with API information. Public endpoint."""
        return {
            "success": True,
            "data": {
                "name": config.APP_NAME,
                "version": config.APP_VERSION,
                "environment": config.ENVIRONMENT,
                "docs": "/docs",
            }
        }

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint for monitoring. Public endpoint."""
        health_status = {
            "status": "healthy",
            "timestamp": time.time(),
            "checks": {}
        }

        db_handle = getattr(request.app.state, "db", None)
        try:
            if db_handle is None:
                raise RuntimeError("not initialized")
            with db_handle.get_session() as db:
                db.execute(text("SELECT 1"))
            health_status["checks"]["database"] = {"status": "ok"}
        except Exception as e:
            health_status["checks"]["database"] = {"status": "error", "error": str(e)}
            health_status["status"] = "degraded"

        store = getattr(request.app.state, "storage", None)
        try:
            if store is None:
                raise RuntimeError("not initialized")
            health_status["checks"]["storage"] = store.health_check()
        except Exception as e:
            health_status["checks"]["storage"] = {"status": "error", "error": str(e)}
            health_status["status"] = "degraded"

        return {"success": health_status["status"] == "healthy", "data": health_status}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
