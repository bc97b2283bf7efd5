"""
NoteSafe Backend — Health Check Route
=======================================

What:  GET /health for load balancers and container probes.
How:   Checks both halves of the deletion engine's world: the database
       (SELECT 1) and the image storage root (exists and writable).

Status levels:
    - healthy:   database and storage usable (HTTP 200)
    - unhealthy: either is down (HTTP 503, stop routing traffic)
"""

import logging
import os
import time
from pathlib import Path

from fastapi import APIRouter, Response
from sqlalchemy import text

from notesafe import __version__
from notesafe.config import settings
from notesafe.database import engine
from notesafe.schemas.cascade import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Storage ─────────────────────────────────────────────────────
    storage = Path(settings.storage_root)
    if not storage.is_dir() or not os.access(storage, os.W_OK):
        storage_status = "unavailable"
        overall = "unhealthy"
        logger.warning("Health check: storage root not writable: %s", storage)

    if overall != "healthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
