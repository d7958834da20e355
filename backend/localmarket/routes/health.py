"""
LocalMarket Backend: Service Status Routes
===========================================

What:  GET / (liveness banner) and GET /health (dependency probe).
Who:   Load balancers, Docker health checks, uptime monitors.

Health levels:
    healthy:   database answers SELECT 1                (HTTP 200)
    unhealthy: database unreachable                     (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse

from localmarket import __version__
from localmarket.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, summary="Liveness banner")
async def root() -> str:
    return "Parcel Delivery Server is Running"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Pings the database and reports version, uptime and realtime listener count.",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await request.app.state.database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        realtime_listeners=request.app.state.notification_hub.listener_count,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
