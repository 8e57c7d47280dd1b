import logging

from dotenv import load_dotenv
load_dotenv()  # Load .env file before importing settings

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from core.config import settings
from core.rate_limiter import limiter, rate_limit_exceeded_handler, RateLimits
from src.transit_bc.commute.infrastructure.services.commute_scheduler import commute_scheduler, lifespan_with_scheduler
from src.transit_bc.shared.domain.errors import TransitError

logger = logging.getLogger(__name__)


async def transit_error_handler(request: Request, exc: TransitError) -> JSONResponse:
    """Map domain errors to ``{"error": code, "message": text}``."""
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    # Settings validation is done automatically in core/config.py on import

    app = FastAPI(
        title="Pendel API",
        description="Journey planning, delay alerts and delay compensation for Swedish commuters",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan_with_scheduler,
    )

    # CORS middleware - bearer tokens, no cookies
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL] if settings.is_production else ["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(TransitError, transit_error_handler)

    # Register routers
    from adapters.http.api.transit.routers import (
        stops_router,
        journeys_router,
        compensation_router,
        notifications_router,
        push_router,
        ws_router,
        commute_router,
        routes_router,
        users_router,
        alerts_router,
    )
    app.include_router(stops_router, prefix="/api/v1")
    app.include_router(journeys_router, prefix="/api/v1")
    app.include_router(compensation_router, prefix="/api/v1")
    app.include_router(notifications_router, prefix="/api/v1")
    app.include_router(push_router, prefix="/api/v1")
    app.include_router(ws_router, prefix="/api/v1")
    app.include_router(commute_router, prefix="/api/v1")
    app.include_router(routes_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(alerts_router, prefix="/api/v1")

    @app.get("/health")
    @limiter.limit(RateLimits.HEALTH)
    async def health_check(request: Request):
        """Health check endpoint.

        Returns 503 while the database is unreachable so orchestrators do
        not route traffic to the instance.
        """
        from core.containers import container
        from core.database import SessionLocal

        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Health check database failure: {e}")
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "message": "Database unavailable"},
            )
        finally:
            db.close()

        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "commute_monitor": commute_scheduler.status,
            "transit_cache": container.transit_client().cache.stats,
        }

    return app


app = create_app()
