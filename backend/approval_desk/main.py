"""
Approval Desk - Main FastAPI Application

This is the entry point for the FastAPI application.
It configures middleware, routes, and lifecycle handlers.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import settings
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .domain.errors import StoreError
from .repositories.store_provider import get_record_store, close_record_store
from .scheduler.refresh_scheduler import start_scheduler, stop_scheduler
from .services.onboarding_service import OnboardingService
from .services.reconciliation_service import ReconciliationService
from .services.session_service import get_session_manager
from .utils.logger import setup_logging, get_logger

# Setup logging first
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


def _reconcile() -> None:
    ReconciliationService().run()


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Creates store indexes / unique constraints
        - Seeds the bootstrap administrator into an empty store
        - Runs one reconciliation pass
        - Starts the refresh scheduler

    Shutdown:
        - Closes every session (removing its refresh job)
        - Stops scheduler
        - Closes the record store
    """
    # Startup
    logger.info("Starting Approval Desk...")
    store = get_record_store()

    try:
        store.ensure_indexes()
        logger.info("Record store indexes created")
    except StoreError as e:
        logger.error(f"Failed to create indexes: {e.message}")

    try:
        OnboardingService(store).ensure_bootstrap_admin()
        ReconciliationService(store).run()
    except StoreError as e:
        logger.error(f"Startup data checks failed: {e.message}")

    sessions = get_session_manager()
    if settings.scheduler_enabled:
        scheduler = start_scheduler(_reconcile)
        sessions.attach_scheduler(scheduler)

    logger.info("Application started successfully")

    yield

    # Shutdown
    logger.info("Shutting down...")
    sessions.close_all()
    sessions.attach_scheduler(None)
    stop_scheduler()
    close_record_store()
    logger.info("Application shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    application = FastAPI(
        title="Approval Desk",
        description="Approval requests with signed attachments, account onboarding and notifications",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
    )

    # Register middleware
    _configure_middleware(application)

    # Register error handlers
    register_error_handlers(application)

    # Register routes
    _configure_routes(application)

    return application


def _configure_middleware(app: FastAPI) -> None:
    """Configure application middleware."""
    # allow_credentials must be False when allowing all origins
    allow_all = settings.cors_origins.strip() == "*"

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )

    # Correlation ID middleware
    app.add_middleware(CorrelationIdMiddleware)


def _configure_routes(app: FastAPI) -> None:
    """Configure application routes."""
    # API routes (versioned)
    app.include_router(api_router, prefix="/api/v1")

    # Health check endpoint (no auth required)
    @app.get("/health", tags=["Health"])
    async def health():
        """
        Health check endpoint.

        Returns application health status including record store connectivity.
        """
        store_health = get_record_store().health_check()
        return {
            "status": "healthy" if store_health.get("status") == "healthy" else "degraded",
            "version": VERSION,
            "environment": settings.environment,
            "store": store_health
        }

    # Root endpoint
    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Approval Desk",
            "version": VERSION,
            "docs": "/api/docs" if settings.debug else None
        }


# =============================================================================
# Application Instance
# =============================================================================

# Create the application instance
app = create_app()
