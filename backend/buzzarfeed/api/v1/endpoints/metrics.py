"""Prometheus Metrics Endpoint.

Exposes application metrics in Prometheus format.
"""

from fastapi import APIRouter, Response

from ....core.constants import ApiEndpoints
from ....core.metrics import get_content_type, get_metrics

router = APIRouter()


@router.get(ApiEndpoints.METRICS, include_in_schema=False)
async def prometheus_metrics():
    """Expose Prometheus metrics.

    Example Prometheus configuration:
    ```yaml
    scrape_configs:
      - job_name: 'buzzarfeed-api'
        static_configs:
          - targets: ['backend:8000']
        metrics_path: '/metrics'
        scrape_interval: 15s
    ```
    """
    return Response(
        content=get_metrics(),
        media_type=get_content_type()
    )
