# qrgate/routers/health.py
# Health check endpoints for monitoring and load balancers
# Provides liveness and readiness probes

import time
import logging
from typing import Dict, Any
from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from qrgate.middleware.error_handler import StorageError
from qrgate.repositories.record_store import RecordStore
from qrgate.schemas.common import ComponentHealth

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


class HealthStatus(BaseModel):
    """Health check response model."""
    status: str  # "healthy", "unhealthy"
    timestamp: float
    version: str = "1.0.0"
    checks: Dict[str, Dict[str, Any]] = {}


async def check_store_health(store: RecordStore) -> ComponentHealth:
    """Check that the record store can be read."""
    start = time.time()

    try:
        await store.ping()
    except StorageError as e:
        logger.error(f"Record store health check failed: {e.message}")
        return ComponentHealth(
            status="unhealthy",
            latency_ms=(time.time() - start) * 1000,
            message=e.message
        )

    return ComponentHealth(
        status="healthy",
        latency_ms=(time.time() - start) * 1000,
        message=type(store).__name__
    )


@router.get("/health", response_model=HealthStatus)
async def health_check(request: Request, response: Response):
    """
    Full health check endpoint.
    Returns status of all components.
    """
    store_health = await check_store_health(request.app.state.record_store)
    checks = {
        "store": {
            "status": store_health.status,
            "latency_ms": round(store_health.latency_ms, 2),
            "message": store_health.message
        }
    }

    overall_status = "healthy"
    if store_health.status == "unhealthy":
        overall_status = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthStatus(
        status=overall_status,
        timestamp=time.time(),
        checks=checks
    )


@router.get("/health/live")
async def liveness_probe():
    """
    Liveness probe.
    Returns 200 if the application is running.
    Does NOT check the record store.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_probe(request: Request, response: Response):
    """
    Readiness probe.
    Returns 200 only if the record store can be read.
    """
    store_health = await check_store_health(request.app.state.record_store)

    if store_health.status == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {
            "status": "not_ready",
            "reason": store_health.message
        }

    return {"status": "ready"}
