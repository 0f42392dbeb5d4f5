from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import ai, auth, billing, billing_webhook, cron, downloads, health, library, trends, usage
from app.core.config import Settings, load_settings
from app.core.exceptions import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ProviderError,
    StorageUnavailable,
)
from app.core.logging_config import sanitize_log_data, setup_logging
from app.db.init_db import init_db
from app.db.session import build_engine, build_session_factory
from app.services.ai_service import build_openai_client
from app.services.trend_scraper import build_trend_scraper
from app.services.usage_cache import UsageCache, build_redis_client

logger = logging.getLogger(__name__)


# ============================================
# ✅ EXCEPTION HANDLERS
# ============================================

def _configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": {"error": "configuration_error", "message": str(exc)}},
    )


def _storage_unavailable_handler(request: Request, exc: StorageUnavailable):
    logger.error(f"Storage unavailable on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": {"error": "storage_unavailable", "operation": exc.operation}},
    )


def _not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


def _provider_error_handler(request: Request, exc: ProviderError):
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": {"error": "provider_error", "message": str(exc)}},
    )


def _conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": {"error": "conflict", "message": str(exc)}},
    )


# ============================================
# ✅ FASTAPI APP FACTORY
# ============================================

def create_app(settings: Optional[Settings] = None, configure_logging: bool = True) -> FastAPI:
    """
    Build the Kapture API.

    Settings are loaded from the environment only when not passed in. The
    engine, session factory, Redis client and vendor clients are created here
    and shared through app.state.

    Run with: uvicorn --factory app.main:create_app
    """
    if settings is None:
        settings = load_settings()
    if configure_logging:
        setup_logging(settings)
    logger.info(f"Starting Kapture API with settings: {sanitize_log_data(settings.model_dump())}")

    app = FastAPI(title="Kapture API")

    engine = build_engine(settings)
    if settings.app_env != "production":
        # Production schema is managed by Alembic
        init_db(engine)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.usage_cache = UsageCache(build_redis_client(settings), settings.usage_cache_ttl_seconds)
    app.state.openai_client = build_openai_client(settings)
    app.state.trend_scraper = build_trend_scraper(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.add_exception_handler(ConfigurationError, _configuration_error_handler)
    app.add_exception_handler(StorageUnavailable, _storage_unavailable_handler)
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(ProviderError, _provider_error_handler)
    app.add_exception_handler(ConflictError, _conflict_handler)

    # ============================================
    # ✅ REGISTER ALL ROUTERS
    # ============================================

    app.include_router(auth.router)
    app.include_router(usage.router)
    app.include_router(billing.router)
    app.include_router(billing_webhook.router)
    app.include_router(downloads.router)
    app.include_router(library.router)
    app.include_router(ai.router)
    app.include_router(trends.router)
    app.include_router(cron.router)
    app.include_router(health.router)

    @app.get("/")
    def root():
        return {"status": "Kapture API running"}

    return app
