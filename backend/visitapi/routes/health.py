"""
Current Visit API: Health Check Route
=====================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 through the VisitStore and reports the result.
Who:   Called by container health checks, load balancers and monitoring.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Request, Response

from visitapi import __version__
from visitapi.schemas.visit import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """
    Probe the database and return the aggregate status.

    The probe is a single SELECT 1, cheap enough for probes every few seconds.
    """
    store = request.app.state.visit_store
    if await store.ping():
        db_status = "connected"
        overall = "healthy"
    else:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
