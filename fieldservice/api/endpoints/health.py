"""Health check endpoint"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.orm import Session
from redis import Redis
import logging

from fieldservice.api.deps import get_vector_store
from fieldservice.database.session import get_db
from fieldservice.rag.vector_store import VectorStore
from fieldservice.schemas.response import HealthResponse
from fieldservice.config import settings

router = APIRouter()
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    response: Response,
    db: Session = Depends(get_db),
    vector_store: VectorStore = Depends(get_vector_store)
):
    """
    Health check endpoint
    Checks connectivity to:
    - Database
    - Qdrant
    - Redis (optional, only when the embedding cache is enabled)
    """
    health_status = {
        "status": "healthy",
        "dependencies": {},
        "version": VERSION
    }

    # Check database
    try:
        db.execute(text("SELECT 1"))
        health_status["dependencies"]["database"] = "connected"
    except Exception as e:
        health_status["dependencies"]["database"] = f"error: {str(e)}"
        health_status["status"] = "unhealthy"
        logger.error(f"Database health check failed: {str(e)}")

    # Check Qdrant
    if vector_store.health_check():
        health_status["dependencies"]["qdrant"] = "connected"
    else:
        health_status["dependencies"]["qdrant"] = "error: not available"
        health_status["status"] = "unhealthy"

    # Check Redis (optional - don't fail if not available)
    if settings.RAG_ENABLE_CACHE:
        try:
            redis_client = Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2)
            redis_client.ping()
            health_status["dependencies"]["redis"] = "connected"
        except Exception as e:
            health_status["dependencies"]["redis"] = f"not available: {str(e)}"
            logger.warning(f"Redis health check failed: {str(e)}")
    else:
        health_status["dependencies"]["redis"] = "disabled"

    # Set HTTP status code
    if health_status["status"] == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(**health_status)
