"""FastAPI application configuration module."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Internal imports
from ..config.environment import IS_PRODUCTION_ENVIRONMENT # Environment must be imported first
from ..config.cors import CORS_CONFIG
from ..utils.logging_config import setup_logging
from .. import __version__
from ..db import db, DatabaseError
from ..staffing.errors import StaffingError
from .deps import error_detail
from .routes import (
    admin,
    health,
    inquiries,
    staff_events,
    staff_profile,
)

# Set up logging
setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    try:
        db.ensure_tables_exist()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise
    yield

async def staffing_error_handler(request: Request, exc: StaffingError) -> JSONResponse:
    """Domain errors carry their own status code and user-facing message."""
    return JSONResponse(status_code=exc.status_code, content={"detail": error_detail(exc)})

async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "The service is temporarily unavailable, please try again"},
    )

def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Event Staffing API",
        description="API for event staffing, work contracts, qualifications and customer requests",
        version=__version__,
        docs_url=None if IS_PRODUCTION_ENVIRONMENT else '/api/docs',
        redoc_url=None if IS_PRODUCTION_ENVIRONMENT else '/api/redoc',
        lifespan=lifespan
    )

    # Configure CORS
    app.add_middleware(CORSMiddleware, **CORS_CONFIG)

    app.add_exception_handler(StaffingError, staffing_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)

    # Include health check router without prefix
    app.include_router(health.router)

    # Include routers with prefix
    app.include_router(staff_events.router, prefix="/api")
    app.include_router(staff_profile.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")
    app.include_router(inquiries.router, prefix="/api")

    return app

# Create the application instance
app = create_application()
