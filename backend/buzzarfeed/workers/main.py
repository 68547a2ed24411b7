"""ARQ Worker Configuration.

Runs the email task and the periodic maintenance jobs.

    arq buzzarfeed.workers.main.WorkerSettings
"""

import logging

from arq import cron, run_worker
from arq.worker import func
from prometheus_client import start_http_server

from ..core.constants import Timeout
from ..core.logging import setup_logging
from ..infrastructure.messaging import get_redis_settings
from .cleanup import cleanup_password_reset_tokens
from .notifications import send_email

setup_logging()


class WorkerSettings:
    """ARQ Worker settings.

    - Email delivery retried up to max_tries on transient SMTP errors
    - Nightly purge of expired and used password reset tokens
    """

    redis_settings = get_redis_settings()

    max_jobs = 10
    job_timeout = Timeout.JOB_TIMEOUT
    max_tries = 3

    functions = [
        func(send_email, name='send_email'),
        func(cleanup_password_reset_tokens, name='cleanup_password_reset_tokens'),
    ]

    cron_jobs = [
        cron(cleanup_password_reset_tokens, hour=3, minute=0),
    ]

    log_results = True

    worker_name = "buzzarfeed-worker"


if __name__ == "__main__":
    port = 8001
    start_http_server(port)
    logging.getLogger("prometheus_client").setLevel(logging.WARNING)
    print(f"Started Prometheus metrics server on port {port}")

    run_worker(WorkerSettings)
