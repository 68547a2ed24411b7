"""Email delivery task.

The API renders messages and enqueues them (see NotificationService); this
task does the actual SMTP conversation. Without MAIL_HOST the message is only
logged, which is what local development uses.
"""

import asyncio
import smtplib
import time
from email.message import EmailMessage
from email.utils import formataddr

from ..core.config import settings
from ..core.constants import Security, Timeout
from ..core.exceptions import EmailDeliveryError, InvalidEmailPayloadError
from ..core.logging import get_logger, set_request_id
from ..core.metrics import (
    emails_total,
    track_inprogress_decorator,
    worker_task_duration_seconds,
    worker_tasks_in_progress,
    worker_tasks_total,
)

logger = get_logger(__name__)

REQUIRED_FIELDS = ("to_email", "subject", "body")


def build_message(payload: dict) -> EmailMessage:
    """Build the MIME message for a queued payload.

    Raises:
        InvalidEmailPayloadError: A required field is missing or empty
    """
    missing = [field for field in REQUIRED_FIELDS if not payload.get(field)]
    if missing:
        raise InvalidEmailPayloadError(f"Email payload missing fields: {', '.join(missing)}")

    message = EmailMessage()
    message["From"] = formataddr((settings.MAIL_FROM_NAME, settings.MAIL_FROM_ADDRESS))
    message["To"] = formataddr((payload.get("to_name") or "", payload["to_email"]))
    message["Subject"] = payload["subject"]
    message.set_content(payload["body"])
    return message


def _deliver(message: EmailMessage) -> None:
    """Blocking SMTP send, run in a thread."""
    encryption = settings.MAIL_ENCRYPTION.lower()
    smtp_class = smtplib.SMTP_SSL if encryption == "ssl" else smtplib.SMTP

    with smtp_class(settings.MAIL_HOST, settings.MAIL_PORT, timeout=Timeout.SMTP_TIMEOUT) as smtp:
        if encryption == "tls":
            smtp.starttls()
        if settings.MAIL_USERNAME:
            smtp.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
        smtp.send_message(message)


@track_inprogress_decorator(worker_tasks_in_progress)
async def send_email(ctx, payload: dict):
    """Task: deliver one email.

    Args:
        ctx: ARQ context
        payload: to_email, to_name, subject, body, template, request_id

    Raises:
        EmailDeliveryError: Transient SMTP failure; ARQ retries the job
    """
    start_time = time.time()
    template = payload.get("template", "unknown")
    set_request_id(payload.get("request_id") or f"{Security.REQUEST_ID_PREFIX_EMAIL}{ctx.get('job_id', '')}")

    try:
        message = build_message(payload)
    except InvalidEmailPayloadError as e:
        logger.error(
            "Invalid email payload (will not retry)",
            extra={'template': template, 'error': str(e), 'retryable': False}
        )
        worker_tasks_total.labels(task_name='send_email', status='failure').inc()
        emails_total.labels(template=template, status="invalid").inc()
        return f"Email dropped: {e}"

    if not settings.MAIL_HOST:
        logger.info(
            "No MAIL_HOST configured, email logged only",
            extra={'to_email': payload["to_email"], 'subject': payload["subject"], 'template': template}
        )
        worker_tasks_total.labels(task_name='send_email', status='success').inc()
        emails_total.labels(template=template, status="logged").inc()
        return "Email logged"

    try:
        await asyncio.to_thread(_deliver, message)
    except smtplib.SMTPRecipientsRefused as e:
        logger.error(
            "Recipient refused (will not retry)",
            extra={'to_email': payload["to_email"], 'template': template, 'error': str(e)}
        )
        worker_tasks_total.labels(task_name='send_email', status='failure').inc()
        emails_total.labels(template=template, status="refused").inc()
        return "Recipient refused"
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(
            "SMTP delivery failed (will retry)",
            extra={
                'to_email': payload["to_email"],
                'template': template,
                'error': str(e),
                'job_try': ctx.get('job_try'),
                'retryable': True
            }
        )
        worker_tasks_total.labels(task_name='send_email', status='retry').inc()
        raise EmailDeliveryError(f"SMTP delivery failed: {e}") from e
    finally:
        worker_task_duration_seconds.labels(task_name='send_email').observe(time.time() - start_time)

    logger.info(
        "Email sent",
        extra={'to_email': payload["to_email"], 'template': template}
    )
    worker_tasks_total.labels(task_name='send_email', status='success').inc()
    emails_total.labels(template=template, status="sent").inc()
    return "Email sent"
