"""
VideoTube Backend — Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs `SELECT 1` against the database and pings Cloudinary.

Status levels:
    healthy:   database connected, Cloudinary available
    degraded:  database connected, Cloudinary unavailable (reads still work)
    unhealthy: database disconnected
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from app import __version__
from app.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    cloudinary_status = "available"
    overall = "healthy"

    try:
        from app.database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    from app.services.cloudinary_store import cloudinary_store
    if not await cloudinary_store.health_check():
        cloudinary_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        cloudinary=cloudinary_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
