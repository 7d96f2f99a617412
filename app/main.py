"""
app/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Builds the composition root (store, error bus, permission listener,
  LLM client, triggers) and registers API routes
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import time

from app.ai.llm_client import LlmClient
from app.core.config import settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.events import ErrorEmitter
from app.core.logging import setup_logging, get_logger
from app.core.permission_listener import PermissionErrorListener
from app.db.collections import COLLECTION_PENDING_USERS
from app.db.mongo import (
    connect_to_mongo,
    close_mongo_connection,
    check_database_health,
    get_database,
    supports_change_streams,
)
from app.db.indexes import create_indexes
from app.db.rules import SecurityRules
from app.db.store import DocumentStore
from app.db.triggers import OnCreateTrigger
from app.services.otp_notifier import OtpNotifier
from app.api import actions, admin, auth, profile, records, subscriptions

# Initialize logging first
setup_logging()
logger = get_logger(__name__)


def init_app_state(app: FastAPI, database, llm: Optional[LlmClient] = None) -> None:
    """
    Wires the shared services onto app.state.

    One error emitter and one mounted permission listener exist per app.
    """
    app.state.database = database
    app.state.store = DocumentStore(database, SecurityRules(settings.ADMIN_EMAIL))
    app.state.emitter = ErrorEmitter()
    app.state.permission_listener = PermissionErrorListener(app.state.emitter, settings)
    app.state.permission_listener.mount()
    app.state.llm = llm or LlmClient()
    app.state.triggers = []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("🚀 Starting Zimmah application...")

    try:
        # Validate configuration
        logger.info("Validating configuration...")
        validate_settings()
        logger.info("✅ Configuration validated")

        # Connect to MongoDB
        logger.info("Connecting to MongoDB...")
        await connect_to_mongo()
        database = await get_database()
        logger.info("✅ MongoDB connected")

        # Create database indexes
        logger.info("Creating database indexes...")
        await create_indexes(database)
        logger.info("✅ Database indexes created")

        init_app_state(app, database)

        if settings.ENABLE_TRIGGERS and not supports_change_streams():
            logger.warning("Triggers enabled but change streams are unavailable, OTP trigger not started")
        elif settings.ENABLE_TRIGGERS:
            otp_trigger = OnCreateTrigger(database, COLLECTION_PENDING_USERS, OtpNotifier(), name="sendOtp")
            otp_trigger.start()
            app.state.triggers.append(otp_trigger)

        logger.info("🎉 Zimmah application started successfully!")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Debug Mode: {settings.DEBUG}")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield  # Application runs here

    # Shutdown (reverse order)
    logger.info("🛑 Shutting down Zimmah application...")

    try:
        for trigger in reversed(app.state.triggers):
            await trigger.stop()

        await app.state.llm.close()
        app.state.permission_listener.unmount()

        await close_mongo_connection()
        logger.info("✅ MongoDB connection closed")

        logger.info("👋 Zimmah application shut down successfully")

    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Zimmah",
        description="Digital vault for Wasiyat, Qarz and Amanat records with Shariah-aware AI assistants",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else None,
        debug=settings.DEBUG,
        docs_url="/docs" if settings.is_development else None,  # Disable docs in production
        redoc_url="/redoc" if settings.is_development else None,
    )

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request timing middleware
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to all responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        # Log slow requests
        if process_time > 5.0:  # More than 5 seconds
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path}",
                extra={"process_time": process_time}
            )

        return response

    add_exception_handlers(app)

    # Register API routes
    app.include_router(auth.router, prefix="/auth", tags=["Auth"])
    app.include_router(actions.router, prefix="/actions", tags=["AI Actions"])
    app.include_router(records.router, prefix=settings.API_PREFIX, tags=["Records"])
    app.include_router(profile.router, prefix=settings.API_PREFIX, tags=["Profile"])
    app.include_router(admin.router, prefix=f"{settings.API_PREFIX}/admin", tags=["Admin"])
    app.include_router(subscriptions.router, tags=["Live"])

    # Root endpoint
    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - basic info."""
        return {
            "name": "Zimmah API",
            "version": "1.0.0",
            "description": "Islamic finance record vault",
            "status": "running",
            "environment": settings.ENVIRONMENT
        }

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """
        Checks database connectivity and service status.
        """
        health_status = {
            "status": "healthy",
            "timestamp": time.time(),
            "environment": settings.ENVIRONMENT,
            "version": "1.0.0",
            "checks": {}
        }

        db_healthy = await check_database_health()
        health_status["checks"]["database"] = "healthy" if db_healthy else "unhealthy"
        if not db_healthy:
            health_status["status"] = "degraded"

        health_status["checks"]["change_streams"] = supports_change_streams()
        triggers = getattr(app.state, "triggers", [])
        health_status["checks"]["triggers"] = {trigger.name: trigger.running for trigger in triggers}

        status_code = 200 if health_status["status"] == "healthy" else 503
        return JSONResponse(content=health_status, status_code=status_code)

    # Readiness probe (for Kubernetes/orchestration)
    @app.get("/ready", tags=["Health"])
    async def readiness_check():
        """
        Readiness probe - indicates if app is ready to receive traffic.
        """
        if await check_database_health():
            return {"status": "ready"}
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "database_unavailable"}
        )

    # Liveness probe (for Kubernetes/orchestration)
    @app.get("/live", tags=["Health"])
    async def liveness_check():
        """
        Liveness probe - indicates if app is alive.
        """
        return {"status": "alive"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
