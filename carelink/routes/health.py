"""
CareLink Services — Health Check Route
========================================

What:  Liveness endpoint for Docker health checks and load balancer probes.
How:   Returns a static payload; it does not probe the document store, so a
       200 means "the process is serving", not "Firestore is reachable".
"""

import logging
import time

from fastapi import APIRouter

from carelink import __version__
from carelink.config import settings
from carelink.schemas.caretaker import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Track when the service started for uptime reporting
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service liveness check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        service=settings.service,
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
