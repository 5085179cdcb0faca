"""
Flock Backend — Health Check Route
===================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks the database and the image storage volume and returns an
       aggregate status.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    healthy:   database reachable and storage writable
    degraded:  database reachable, storage not writable (reads still work,
               image uploads fail)
    unhealthy: database unreachable (HTTP 503)
"""

import logging
import os
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from flock import __version__
from flock.schemas.common import HealthResponse
from flock.services.image_host import LocalImageHost, image_host

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    """
    Lightweight probes only: SELECT 1 and an os.access() check on the
    images directory.
    """
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        from flock.database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Image Storage ───────────────────────────────────────────────
    if isinstance(image_host, LocalImageHost) and not os.access(image_host.images_dir, os.W_OK):
        storage_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall
        logger.warning("Health check: image storage not writable: %s", image_host.images_dir)

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
