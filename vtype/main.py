"""
Main FastAPI application module.

This module initializes the FastAPI application with all its middleware,
routers, and lifecycle management.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from vtype.api.v1.endpoints import health_router, realtime_router
from vtype.api.v1.router import api_router
from vtype.core.config import Settings, settings
from vtype.core.error_handlers import register_exception_handlers
from vtype.core.logging import logger
from vtype.core.logging_config import setup_logging
from vtype.core.redis import RedisClient, close_redis, connect_redis, create_redis_client
from vtype.core.tokens import TokenStore
from vtype.db.init_db import init_db, dispose_db
from vtype.db.session import sessionmanager
from vtype.services.maintenance import CleanupScheduler, TokenCleanupService
from vtype.services.realtime import (
    ChatProtocol,
    ConnectionManager,
    PresenceRegistry,
    RoomRouter,
)


def init_app_state(app: FastAPI, redis_client: RedisClient, config: Settings = settings) -> None:
    """
    Wire the shared services onto ``app.state``.

    Presence, rooms and live connections are process-local; tokens live in
    the key-value store and messages in the database.
    """
    token_store = TokenStore(redis_client, config)
    presence = PresenceRegistry()
    rooms = RoomRouter(presence)
    cleanup = TokenCleanupService(redis_client, token_store)

    app.state.redis = redis_client
    app.state.token_store = token_store
    app.state.presence = presence
    app.state.rooms = rooms
    app.state.protocol = ChatProtocol(presence, rooms, session_factory=sessionmanager.session)
    app.state.connections = ConnectionManager()
    app.state.cleanup = cleanup
    app.state.scheduler = CleanupScheduler(cleanup, config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles database and store initialization on startup and cleanup on
    shutdown.
    """
    redis_client = None
    try:
        # Startup
        setup_logging(settings.LOG_DIR, settings.LOG_LEVEL)
        logger.info("Initializing application...", extra={"environment": settings.ENVIRONMENT})

        sessionmanager.init(settings.DATABASE_URL)
        await init_db()

        redis_client = create_redis_client(settings)
        app.state.redis_available = await connect_redis(redis_client)
        init_app_state(app, redis_client, settings)

        if settings.CLEANUP_SCHEDULER_ENABLED:
            app.state.scheduler.start()
        logger.info("Application initialized successfully")

        yield  # Application runtime

    except Exception as e:
        logger.error(
            "Error during application startup",
            extra={
                "error": str(e),
                "error_type": type(e).__name__
            }
        )
        raise
    finally:
        # Shutdown
        logger.info("Shutting down application...")
        scheduler = getattr(app.state, "scheduler", None)
        if scheduler is not None:
            await scheduler.stop()
        if redis_client is not None:
            await close_redis(redis_client)
        await dispose_db()
        logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    logger.info("Creating FastAPI application...")
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="VType realtime chat API",
        version=settings.VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan
    )

    register_exception_handlers(app)

    if settings.BACKEND_CORS_ORIGINS:
        origin_list = [str(origin).rstrip('/') for origin in settings.BACKEND_CORS_ORIGINS]
        logger.info("CORS configuration applied", extra={"origins": origin_list})
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origin_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_router, prefix=settings.API_V1_STR)
    app.include_router(health_router, prefix="/health", tags=["health"])
    app.include_router(realtime_router)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Log every HTTP request and response with relevant context.
        """
        logger.info(
            "Incoming request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "client_host": request.client.host if request.client else None
            }
        )

        response = await call_next(request)

        logger.info(
            "Outgoing response",
            extra={
                "status_code": response.status_code,
                "method": request.method,
                "path": request.url.path
            }
        )

        return response

    return app


app = create_app()
