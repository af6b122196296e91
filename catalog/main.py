"""
FastAPI application entry point.
Main application instance with middleware and route configuration.
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from pathlib import Path
import logging
import asyncio

from catalog.config import settings
from catalog.database import close_db, get_session_factory, init_db
from catalog.errors import (
    CatalogError,
    FormValidationError,
    GatewayReadError,
    GatewayWriteError,
    ItemNotFoundError,
    UploadError,
)
from catalog.gallery.sessions import GallerySessionRegistry
from catalog.services.cloudinary_service import validate_cloudinary_config
from catalog.routes import catalog, cms, gallery, pages

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI application instance
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
)

# Open gallery modals, one per viewer
app.state.gallery_sessions = GallerySessionRegistry(max_sessions=settings.GALLERY_MAX_SESSIONS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.CORS_ORIGINS),
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=3600,  # Cache preflight requests for 1 hour
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its response status."""
    method = request.method
    path = request.url.path
    logger.debug(f"Incoming {method} request to {path}")

    try:
        response = await call_next(request)
        logger.info(f"Response status: {response.status_code} for {method} {path}")
        return response
    except Exception as e:
        logger.error(
            f"Error processing {method} {path}: {str(e)}\n"
            f"  Error type: {type(e).__name__}",
            exc_info=True
        )
        raise


# Include routers
app.include_router(catalog.router, prefix="/api", tags=["catalog"])
app.include_router(gallery.router, prefix="/api")
app.include_router(cms.router, prefix="/api", tags=["CMS"])
app.include_router(pages.router)
app.mount(
    "/static",
    StaticFiles(directory=str(Path(__file__).resolve().parent / "static")),
    name="static",
)


# Exception Handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    """Handle request validation errors."""
    logger.error(
        f"Validation error on {request.method} {request.url.path}:\n"
        f"  Errors: {exc.errors()}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation error",
            "detail": exc.errors()
        }
    )


_CATALOG_ERROR_RESPONSES = [
    (FormValidationError, status.HTTP_400_BAD_REQUEST, "Validation error"),
    (ItemNotFoundError, status.HTTP_404_NOT_FOUND, "Item not found"),
    (UploadError, status.HTTP_502_BAD_GATEWAY, "Image upload failed"),
    (GatewayWriteError, status.HTTP_502_BAD_GATEWAY, "Failed to save changes"),
    (GatewayReadError, status.HTTP_502_BAD_GATEWAY, "Failed to load catalog"),
]


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """
    Turn domain errors into dismissable notifications.
    Nothing is retried; the client keeps its form state and may resubmit.
    """
    status_code, error = status.HTTP_500_INTERNAL_SERVER_ERROR, "Catalog error"
    for exc_type, code, label in _CATALOG_ERROR_RESPONSES:
        if isinstance(exc, exc_type):
            status_code, error = code, label
            break

    log = logger.warning if status_code < 500 else logger.error
    log(f"{error} on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": str(exc)}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}:\n"
        f"  Error: {str(exc)}\n"
        f"  Error type: {type(exc).__name__}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred"
        }
    )


# Root Endpoints
@app.get("/api")
async def api_root():
    """API root - health check."""
    return {
        "message": settings.API_TITLE,
        "status": "healthy",
        "version": settings.API_VERSION
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/db")
async def health_check_db():
    """
    Database health check endpoint.
    Tests database connection and returns status.
    """
    session_factory = get_session_factory()
    if session_factory is None:
        return {
            "database": "not_configured",
            "status": "warning",
            "message": "DATABASE_URL is not set or the database failed to initialize"
        }

    try:
        async with session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            return {
                "database": "connected",
                "status": "healthy",
                "result": result.scalar()
            }
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}", exc_info=True)
        return {
            "database": "error",
            "status": "unhealthy",
            "error": "Database connection failed"
        }


@app.get("/health/cloudinary")
async def health_check_cloudinary():
    """
    Cloudinary health check endpoint.
    Validates Cloudinary configuration.
    """
    if validate_cloudinary_config():
        return {
            "cloudinary": "configured",
            "status": "healthy",
            "cloud_name": settings.CLOUDINARY_CLOUD_NAME
        }
    return {
        "cloudinary": "not_configured",
        "status": "warning",
        "message": "Cloudinary credentials not set in environment variables"
    }


@app.on_event("startup")
async def startup_event():
    """
    Initialize database connection on application startup.
    Non-blocking: app will start even if database connection fails.
    """
    logger.info(f"CORS allowed origins: {settings.CORS_ORIGINS}")

    if settings.has_database():
        try:
            await init_db(settings.DATABASE_URL)
            logger.info("Database connection established successfully")
        except Exception as e:
            logger.error(
                f"Failed to initialize database on startup: {str(e)}\n"
                f"The application will continue to run, but pages will show an empty catalog.\n"
                f"Please check your DATABASE_URL configuration and network connectivity."
            )
            # Don't raise - public pages degrade to an empty catalog
            await close_db()
    else:
        logger.info("DATABASE_URL not configured - catalog will be empty")

    if not validate_cloudinary_config():
        logger.warning("Cloudinary credentials not set - image uploads will fail")


@app.on_event("shutdown")
async def shutdown_event():
    """Close gallery sessions and database connections on application shutdown."""
    app.state.gallery_sessions.close_all()
    if settings.has_database():
        try:
            await close_db()
        except Exception as e:
            # Ignore cancellation errors during shutdown - they're expected
            if not isinstance(e, (KeyboardInterrupt, asyncio.CancelledError)):
                logger.warning(f"Error during database shutdown: {str(e)}")
