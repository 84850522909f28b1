"""
Health check endpoint
"""

from datetime import datetime
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from switchboard import __version__
from switchboard.core.config import settings
from switchboard.core.logging import get_logger
from switchboard.db import get_repository

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Health check; 503 when the database does not answer
    """
    database_ok = await get_repository().ping()

    body = {
        "status": "healthy" if database_ok else "unhealthy",
        "database": "connected" if database_ok else "disconnected",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
        "version": __version__
    }

    if not database_ok:
        logger.error("Health check failed: database unavailable")
        return JSONResponse(status_code=503, content=body)

    return body
