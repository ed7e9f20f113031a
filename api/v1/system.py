"""
System endpoints.

Health checks and system status.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..deps import ServicesDep

logger = logging.getLogger(__name__)

router = APIRouter()


def database_health(services) -> JSONResponse:
    """Ping the database and report health; 503 when it is unreachable."""
    body = {
        "status": "healthy",
        "service": "slotbook-api",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected",
        "environment": services.config.environment,
    }

    try:
        services.users.ping()
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        body.update(
            status="unhealthy",
            database="disconnected",
            error="Internal server error" if services.config.is_production else str(e),
        )
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)

    return JSONResponse(status_code=status.HTTP_200_OK, content=body)


@router.get("/status")
async def get_status(services: ServicesDep):
    """
    Health check endpoint.

    Returns system status for Docker healthcheck.
    """
    return database_health(services)
