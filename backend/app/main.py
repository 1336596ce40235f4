from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.database import Database
from app.core.exceptions import InternDeskError, MissingFieldsError
from app.core.logging_config import logger
from app.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from app.api.v1.router import api_router
from app.api.v1.endpoints import pages
from app.services.asset_loader import AssetLoader
from app.services.email_service import EmailService
from app.services.form_api_service import FormApiService
from app.services.storage_service import StorageService
import app.models  # Import models so metadata knows about them


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    # Critical: Without these, the app cannot function
    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")

    if not settings.PUBLIC_BASE_URL:
        errors.append("PUBLIC_BASE_URL is not set - QR codes and download links would be broken")

    # Warnings: App can function but some features may not work
    if not settings.PROTECTED_PASSCODE:
        warnings.append("PROTECTED_PASSCODE not set - dashboard endpoints will refuse every request")

    if not (settings.SENDGRID_API_KEY or (settings.SMTP_USER and settings.SMTP_PASSWORD)):
        warnings.append("No email transport configured - notification endpoints will return 502")

    if not (settings.WIX_API_KEY and settings.WIX_SITE_ID):
        warnings.append("WIX_API_KEY / WIX_SITE_ID not set - get-submission will return 500")

    if not settings.USE_MINIO and not settings.S3_BUCKET_NAME and not settings.S3_BUCKET:
        warnings.append("S3 bucket not set - using default bucket name")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] Critical configuration validated")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"API Version: {settings.API_VERSION}")
    logger.info(f"Offer period rule: {settings.OFFER_PERIOD_RULE}")
    logger.info("=" * 60)

    # Step 1: Validate critical configuration (fail fast!)
    await validate_critical_config()

    # Step 2: Database engine + tables
    app.state.db = Database(settings)
    await app.state.db.create_all()
    logger.info("[Startup] Database tables ready")

    # Step 3: Outbound clients shared by every request
    app.state.storage = StorageService(settings)
    app.state.email = EmailService(settings)
    app.state.assets = AssetLoader(settings)
    app.state.form_api = FormApiService(settings)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    await app.state.form_api.close()
    await app.state.assets.close()
    await app.state.storage.close()
    await app.state.db.dispose()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Internship offer letters, completion certificates and candidate notifications",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False  # Prevent 307 redirects that break CORS
)

# Add middleware (order matters - last added runs first)
# 1. Request logging (runs first for all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. Request size limit (10MB default)
app.add_middleware(RequestSizeLimitMiddleware, max_size=10 * 1024 * 1024)

# 4. CORS - Origins from CORS_ORIGINS_STR in .env
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time", "Content-Disposition"],
)


# Exception handlers
@app.exception_handler(InternDeskError)
async def interndesk_exception_handler(request: Request, exc: InternDeskError):
    if exc.status_code >= 500:
        logger.log_error_with_context(exc, context=request.url.path, code=exc.code)
    elif not isinstance(exc, MissingFieldsError):
        logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"Missing fields on {request.url.path}: {exc.missing}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint"""
    database = "healthy"
    try:
        async with request.app.state.db.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        database = "unhealthy"

    return {
        "status": "healthy" if database == "healthy" else "degraded",
        "app_name": settings.APP_NAME,
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "database": database,
    }


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


# Include API router
app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

# HTML pages live at the root so printed QR codes stay short
app.include_router(pages.router)


def run():
    """Console entry point"""
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
