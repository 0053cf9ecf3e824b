"""
Convenly API - Main Application Entry Point

Event discovery and attendance service:
- Opaque server-side sessions (cookie or bearer token)
- Role-gated event hosting, organizer-only deletion
- Filtered, paginated event listings with a Redis cache in front
- Structured logging with request correlation, Prometheus metrics
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from convenly.api.middleware import RequestLoggingMiddleware
from convenly.api.router import api_router
from convenly.core.config import Settings, get_settings
from convenly.core.exceptions import ConvenlyError
from convenly.core.logging import build_logger, setup_logging
from convenly.core.metrics import metrics_endpoint
from convenly.core.security import BcryptHasher
from convenly.db.session import build_engine, build_sessionmaker
from convenly.repositories.tags import TagRepository
from convenly.services.cache_service import EventListCache, connect_redis


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    settings: Settings = app.state.settings
    logger = app.state.logger
    setup_logging(settings)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    engine = build_engine(settings.DATABASE_URL, settings, echo=settings.DEBUG)
    app.state.sessionmaker = build_sessionmaker(engine)

    if settings.SEED_DEFAULT_TAGS:
        async with app.state.sessionmaker() as session:
            await TagRepository(session, logger, timeout=settings.DB_OPERATION_TIMEOUT).seed_defaults()
            await session.commit()

    redis_client = await connect_redis(settings, logger)
    if redis_client is not None:
        app.state.event_cache = EventListCache(redis_client, settings.REDIS_CACHE_TTL, logger)
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    if redis_client is not None:
        await redis_client.aclose()
    await engine.dispose()
    logger.info("application_shutdown")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Event discovery and attendance API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.logger = build_logger()
    app.state.hasher = BcryptHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.event_cache = None

    @app.exception_handler(ConvenlyError)
    async def convenly_error_handler(request: Request, exc: ConvenlyError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint for Docker and load balancers."""
        cache: Optional[EventListCache] = request.app.state.event_cache
        cache_stats = await cache.stats() if cache is not None else {"status": "disabled"}
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "cache": cache_stats,
        }

    @app.get("/metrics", tags=["Health"], include_in_schema=False)
    async def metrics():
        return metrics_endpoint()

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": "/docs",
        }

    return app


app = create_app()
