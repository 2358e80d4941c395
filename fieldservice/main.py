"""FastAPI application entry point"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from apscheduler.schedulers.background import BackgroundScheduler

from fieldservice.api.endpoints import documents, files, health, search
from fieldservice.database.session import engine
from fieldservice.database.base import Base
from fieldservice.config import settings
from fieldservice.utils.logger import setup_logging
from fieldservice.exceptions import FieldServiceException
from fieldservice.schemas.response import ErrorResponse
from fieldservice.jobs.analytics_cleanup import cleanup_search_analytics
from fieldservice import models  # noqa: F401  registers tables on Base

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# Background scheduler for periodic tasks
scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager
    - Startup: Initialize database tables, start background jobs
    - Shutdown: Cleanup resources
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    from fieldservice.rag.config import rag_config
    logger.info(f"Embedding provider: {rag_config.ai_provider.upper()} (vector size {rag_config.vector_size})")

    # Create database tables
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")
    except Exception as e:
        logger.error(f"Database initialization error: {str(e)}")

    # Start background scheduler
    if settings.SEARCH_ANALYTICS_RETENTION_DAYS > 0:
        try:
            scheduler.add_job(
                cleanup_search_analytics,
                'interval',
                hours=settings.ANALYTICS_CLEANUP_INTERVAL_HOURS,
                id='search_analytics_cleanup',
                replace_existing=True
            )
            scheduler.start()
            logger.info("Background scheduler started with analytics cleanup job")
        except Exception as e:
            logger.error(f"Scheduler initialization error: {str(e)}")
    else:
        logger.info("Search analytics retention disabled")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}")

    if scheduler.running:
        scheduler.shutdown()
        logger.info("Background scheduler stopped")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Document processing and semantic search for field service files",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(documents.router, prefix="/api", tags=["documents"])
app.include_router(files.router, prefix="/api", tags=["files"])
app.include_router(search.router, prefix="/api", tags=["search"])


# Exception handlers
@app.exception_handler(FieldServiceException)
async def field_service_exception_handler(request: Request, exc: FieldServiceException):
    """Handle custom field service exceptions"""
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__}: {str(exc)}")
    else:
        logger.info(f"{exc.__class__.__name__} on {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.__class__.__name__, detail=str(exc)).model_dump(mode="json")
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="InternalServerError", detail="An unexpected error occurred").model_dump(mode="json")
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": VERSION,
        "environment": settings.ENVIRONMENT,
        "docs": "/docs" if settings.DEBUG else "disabled"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "fieldservice.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
