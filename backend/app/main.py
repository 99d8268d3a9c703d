"""
backend/app/main.py

Purpose:
    FastAPI application bootstrap: middleware/router wiring, error rendering,
    and lifespan construction of the process-wide analysis service (LLM
    provider + TTL cache) and the fixtures provider.

Dependencies:
    - app.services.analysis_service
    - app.providers.api_sports
    - app.middleware
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.errors import BetlogicError
from app.middleware.cors import CorsHeadersMiddleware
from app.middleware.logging import StructuredLoggingMiddleware, setup_logging
from app.providers.api_sports import ApiSportsProvider
from app.routers.analysis import router as analysis_router
from app.routers.fixtures import router as fixtures_router
from app.services.analysis_service import build_analysis_service

logger = logging.getLogger("betlogic")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    analysis_service = build_analysis_service(settings)
    fixtures_provider = ApiSportsProvider.from_settings(settings)
    app.state.analysis_service = analysis_service
    app.state.fixtures_provider = fixtures_provider
    logger.info(
        "Analysis service ready (provider=%s, configured=%s, cache_ttl=%ss)",
        analysis_service.provider.name,
        analysis_service.provider.configured,
        settings.ANALYSIS_CACHE_TTL_SECONDS,
    )

    yield

    await analysis_service.aclose()
    await fixtures_provider.aclose()


async def betlogic_error_handler(request: Request, exc: BetlogicError):
    level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        level, "%s on %s %s: %s",
        type(exc).__name__, request.method, request.url.path, exc.error,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_debug=settings.DEBUG_ERRORS),
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="BetLogic",
        description="Match analysis generation for today's football fixtures",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS (inner) then structured logging (outer)
    app.add_middleware(CorsHeadersMiddleware, allow_origin=settings.WP_ORIGIN)
    app.add_middleware(StructuredLoggingMiddleware)

    app.include_router(analysis_router)
    app.include_router(fixtures_router)

    app.add_exception_handler(BetlogicError, betlogic_error_handler)

    @app.get("/health")
    async def health(request: Request):
        """Liveness plus configuration status; never calls upstream."""
        service = getattr(request.app.state, "analysis_service", None)
        fixtures = getattr(request.app.state, "fixtures_provider", None)
        return {
            "status": "healthy",
            "llm_provider": service.provider.name if service else None,
            "llm_configured": bool(service and service.provider.configured),
            "fixtures_configured": bool(fixtures and fixtures.configured),
            "cache_entries": len(service.cache) if service else 0,
        }

    return app


app = create_app()
