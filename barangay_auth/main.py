# =============================================================================
# BARANGAY AUTH SERVICE - MAIN APPLICATION
# =============================================================================
# File: main.py
# Description: FastAPI application entry point with lifecycle management
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from barangay_auth import __version__
from barangay_auth.api.v1 import api_router, health_router
from barangay_auth.api.middleware import (
    SecurityHeadersMiddleware,
    RequestIDMiddleware,
    LoggingMiddleware,
)
from barangay_auth.db.factory import DBFactory
from barangay_auth.core.config import settings
from barangay_auth.core.exceptions import AuthSystemException
from barangay_auth.session.rate_limit import (
    build_rate_limiter,
    login_policy,
    register_policy,
)
from barangay_auth.scripts.seed import seed_test_users


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle manager.

    Handles startup and shutdown events:
    - Startup: Connect storage, create tables (development), seed test users
    - Shutdown: Close all connections gracefully
    """
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")

    try:
        await DBFactory.connect_all()
        logger.info("Database connections established")

        if settings.is_development:
            await DBFactory.create_tables()
            logger.info("Database tables created/verified")

        if settings.seed_test_users:
            await seed_test_users(DBFactory.get_db_adapter())

        logger.info(f"{settings.app_name} started successfully")

    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    logger.info(f"Shutting down {settings.app_name}")

    try:
        await DBFactory.disconnect_all()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")

    logger.info(f"{settings.app_name} shutdown complete")


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_application() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="Barangay resident registration, approval and login service",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # =========================================================================
    # RATE LIMITERS (shared by every request of this app)
    # =========================================================================

    redis = DBFactory.get_redis_adapter() if settings.rate_limit_backend == "redis" else None
    app.state.login_limiter = build_rate_limiter(login_policy(settings), settings, redis)
    app.state.register_limiter = build_rate_limiter(register_policy(settings), settings, redis)

    # =========================================================================
    # MIDDLEWARE STACK (last added = outermost)
    # =========================================================================

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    # =========================================================================
    # EXCEPTION HANDLERS
    # =========================================================================

    @app.exception_handler(AuthSystemException)
    async def auth_exception_handler(
        request: Request,
        exc: AuthSystemException,
    ) -> JSONResponse:
        """Handle application exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Malformed request bodies get the same envelope, as a 400."""
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Invalid request",
                "errorCode": "VALIDATION_ERROR",
                "details": {"errors": jsonable_encoder(exc.errors())},
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        """Handle standard HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": str(exc.detail),
                "errorCode": f"HTTP_{exc.status_code}",
                "details": {},
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled exception")

        # Internal errors are only shown in development
        message = str(exc) if settings.is_development else "An internal error occurred"

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": message,
                "errorCode": "INTERNAL_ERROR",
                "details": {},
            },
        )

    # =========================================================================
    # ROUTES
    # =========================================================================

    app.include_router(api_router)
    app.include_router(health_router)

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "success": True,
            "name": settings.app_name,
            "version": __version__,
            "docs": "/docs" if settings.is_development else None,
        }

    return app


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = create_application()


# =============================================================================
# ENTRYPOINT
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "barangay_auth.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
