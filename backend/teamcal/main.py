"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from teamcal.config import get_settings, get_version
from teamcal.api.exceptions import http_error
from teamcal.api.routes import calendar_sync, events, rsvps, teams
from teamcal.services.errors import CalendarError
from teamcal.tasks import start_scheduler, stop_scheduler, list_jobs


# Configure logging - force INFO level even if uvicorn configured it already
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Explicitly set root logger level to ensure INFO logs are visible
logging.getLogger().setLevel(logging.INFO)

# Silence SQLAlchemy query logging (too verbose)
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
logging.getLogger('sqlalchemy.pool').setLevel(logging.WARNING)

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("Team Calendar API %s starting...", get_version())
    logger.info("  Environment: %s", settings.ENVIRONMENT.upper())
    logger.info("  Database: %s", settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured')
    logger.info("  Notifications: %s", "webhook" if settings.NOTIFY_WEBHOOK_URL else "log only")
    logger.info("  Recurrence limit: %d months", settings.RECURRENCE_MAX_MONTHS)

    if settings.SCHEDULER_ENABLED:
        logger.info("  Background scheduler: Starting...")
        try:
            await start_scheduler()
            logger.info("  Background scheduler: Started successfully")
        except Exception as e:
            logger.error("  Background scheduler: Failed to start - %s", e)
            # Don't fail startup if scheduler fails
    else:
        logger.info("  Background scheduler: Disabled")

    yield  # Application runs

    # Shutdown
    logger.info("Team Calendar API shutting down...")
    try:
        await stop_scheduler()
        logger.info("  Background scheduler: Stopped")
    except Exception as e:
        logger.error("  Background scheduler: Error during shutdown - %s", e)


# Create FastAPI application
app = FastAPI(
    title="Team Calendar API",
    description="Team events, recurring practices, RSVPs and calendar subscriptions",
    version=get_version(),
    docs_url="/api/docs" if settings.DEBUG else None,  # Disable docs in production
    redoc_url="/api/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)


# Include API routers
app.include_router(teams.router)
app.include_router(events.router)
app.include_router(rsvps.router)
app.include_router(calendar_sync.router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": get_version()}


# Scheduler status endpoint
@app.get("/api/scheduler/jobs")
async def get_scheduled_jobs():
    """Get list of scheduled background jobs."""
    return {"jobs": list_jobs()}


@app.exception_handler(CalendarError)
async def calendar_error_handler(request: Request, exc: CalendarError):
    """Turn calendar failures into their HTTP status codes."""
    error = http_error(exc)
    if error.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.DEBUG:
        # In debug mode, show the error details
        import traceback
        return JSONResponse(
            status_code=500,
            content={
                "detail": str(exc),
                "traceback": traceback.format_exc()
            }
        )
    else:
        # In production, return a generic error
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )
