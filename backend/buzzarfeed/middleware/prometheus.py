"""Prometheus Middleware.

Counts and times every HTTP request. Numeric path segments are collapsed
(``/stalls/42/menu/7`` becomes ``/stalls/{id}/menu/{id}``) to keep label
cardinality bounded; the scrape endpoint itself is not measured.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..core.constants import ApiEndpoints, HttpStatusCodes
from ..core.metrics import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)
from ..utils import normalize_path

UNMEASURED_PATHS = (ApiEndpoints.METRICS,)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Records request count, latency and in-flight requests per route."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in UNMEASURED_PATHS:
            return await call_next(request)

        labels = {"method": request.method, "endpoint": normalize_path(request.url.path)}
        in_progress = http_requests_in_progress.labels(**labels)
        in_progress.inc()

        status_code = HttpStatusCodes.INTERNAL_SERVER_ERROR
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            http_request_duration_seconds.labels(**labels).observe(time.perf_counter() - start_time)
            http_requests_total.labels(status_code=status_code, **labels).inc()
            in_progress.dec()
