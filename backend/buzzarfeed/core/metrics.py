"""Prometheus Metrics.

Counters, gauges and histograms for monitoring the service:
- HTTP requests and responses
- Reviews, reactions and reports
- Workflow decisions (applications, amendments, closures)
- Outgoing email and background tasks
- Cache behaviour
"""

import functools

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

# ========================================
# API Metrics
# ========================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

http_requests_in_progress = Gauge(
    'http_requests_in_progress',
    'Number of HTTP requests currently being processed',
    ['method', 'endpoint']
)

# ========================================
# Review Metrics
# ========================================

reviews_submitted_total = Counter(
    'reviews_submitted_total',
    'Total number of reviews submitted',
    ['rating']
)

review_reactions_total = Counter(
    'review_reactions_total',
    'Total review reaction changes',
    ['reaction_type', 'action']
)

review_reports_total = Counter(
    'review_reports_total',
    'Total review reports filed'
)

review_moderations_total = Counter(
    'review_moderations_total',
    'Total moderation actions on reviews',
    ['action']
)

stall_rating_recomputes_total = Counter(
    'stall_rating_recomputes_total',
    'Number of stall rating aggregate recomputations'
)

# ========================================
# Workflow Metrics
# ========================================

applications_submitted_total = Counter(
    'applications_submitted_total',
    'Total number of stall applications submitted'
)

workflow_decisions_total = Counter(
    'workflow_decisions_total',
    'Admin decisions on workflow requests',
    ['workflow', 'decision']
)

accounts_deleted_total = Counter(
    'accounts_deleted_total',
    'Accounts removed through the deletion cascade',
    ['source']
)

# ========================================
# Email / Worker Metrics
# ========================================

emails_total = Counter(
    'emails_total',
    'Outgoing emails by template and outcome',
    ['template', 'status']
)

worker_tasks_total = Counter(
    'worker_tasks_total',
    'Total number of worker tasks processed',
    ['task_name', 'status']
)

worker_task_duration_seconds = Histogram(
    'worker_task_duration_seconds',
    'Worker task duration in seconds',
    ['task_name'],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)
)

worker_tasks_in_progress = Gauge(
    'worker_tasks_in_progress',
    'Number of worker tasks currently being processed'
)


def track_inprogress_decorator(gauge: Gauge):
    """Create a decorator that tracks in-progress tasks using a Prometheus Gauge.

    The wrapper stays a coroutine function so ARQ still recognizes the task.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            gauge.inc()
            try:
                return await func(*args, **kwargs)
            finally:
                gauge.dec()

        return wrapper

    return decorator


# ========================================
# Cache Metrics
# ========================================

cache_hits_total = Counter(
    'cache_hits_total',
    'Total number of cache hits',
    ['cache_key_type']
)

cache_misses_total = Counter(
    'cache_misses_total',
    'Total number of cache misses',
    ['cache_key_type']
)

cache_errors_total = Counter(
    'cache_errors_total',
    'Total number of cache errors',
    ['operation', 'error_type']
)

cache_connection_status = Gauge(
    'cache_connection_status',
    'Cache connection status (1=connected, 0=disconnected)'
)

# ========================================
# Application Info
# ========================================

app_info = Info(
    'app',
    'Application information'
)


def set_app_info(version: str, environment: str):
    """Set application information for Prometheus.

    Call this during app startup.
    """
    app_info.info({
        'version': version,
        'environment': environment,
        'service': 'buzzarfeed'
    })


def get_metrics():
    """Get current Prometheus metrics in text format."""
    return generate_latest()


def get_content_type():
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
