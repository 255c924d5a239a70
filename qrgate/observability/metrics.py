# qrgate/observability/metrics.py
# minimal prometheus instrumentation

from __future__ import annotations

import time

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware


RESOLUTIONS = Counter(
    "qr_resolutions_total",
    "Resolver outcomes",
    labelnames=("outcome",),
)
RECORD_OPERATIONS = Counter(
    "qr_record_operations_total",
    "Successful record lifecycle operations",
    labelnames=("operation",),
)
REQUEST_LATENCY = Histogram(
    "qr_request_latency_seconds",
    "Request latency in seconds",
    labelnames=("method", "endpoint", "status"),
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Observe request latency labelled by endpoint name, not raw path."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        # unmatched paths share one label so ids never explode cardinality
        endpoint = request.scope.get("endpoint")
        name = getattr(endpoint, "__name__", "unmatched")
        REQUEST_LATENCY.labels(request.method, name, str(response.status_code)).observe(
            time.perf_counter() - start
        )
        return response


router = APIRouter(tags=["Metrics"])


@router.get("/metrics", include_in_schema=False)
async def prometheus_metrics() -> Response:
    """// expose /metrics"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
