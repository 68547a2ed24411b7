"""Notification Service.

Outgoing email. Messages are rendered here and handed to the arq worker
(``send_email`` task) after the database transaction has committed. Delivery
problems are logged and counted, never raised: a failed email must not undo an
approval or a password reset request.
"""

from typing import Any

from ..core.config import settings
from ..core.constants import EmailTemplates
from ..core.logging import get_logger, get_request_id
from ..core.metrics import emails_total
from ..infrastructure.messaging import get_arq_pool

logger = get_logger(__name__)


class NotificationService:
    """Renders and dispatches transactional emails."""

    async def send_email(
        self,
        to_email: str,
        to_name: str,
        subject: str,
        body: str,
        template: str
    ) -> bool:
        """Dispatch one email according to EMAIL_DELIVERY.

        Returns:
            True if the message was queued (or logged), False otherwise
        """
        payload: dict[str, Any] = {
            "to_email": to_email,
            "to_name": to_name,
            "subject": subject,
            "body": body,
            "template": template,
            "request_id": get_request_id(),
        }

        if settings.EMAIL_DELIVERY == "disabled":
            emails_total.labels(template=template, status="disabled").inc()
            return False

        if settings.EMAIL_DELIVERY == "log":
            logger.info(
                "Email (log delivery)",
                extra={'to_email': to_email, 'subject': subject, 'template': template}
            )
            emails_total.labels(template=template, status="logged").inc()
            return True

        try:
            pool = await get_arq_pool()
            await pool.enqueue_job("send_email", payload)
        except Exception as e:
            logger.warning(
                "Failed to queue email",
                extra={'to_email': to_email, 'template': template, 'error': str(e)}
            )
            emails_total.labels(template=template, status="queue_failed").inc()
            return False

        emails_total.labels(template=template, status="queued").inc()
        logger.info(
            "Email queued",
            extra={'to_email': to_email, 'template': template}
        )
        return True

    async def send_password_reset(self, name: str, email: str, token: str) -> bool:
        reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={token}"
        return await self.send_email(
            email,
            name,
            EmailTemplates.PASSWORD_RESET_SUBJECT,
            EmailTemplates.PASSWORD_RESET_BODY.format(
                name=name,
                reset_url=reset_url,
                expiry_minutes=settings.PASSWORD_RESET_EXPIRY_MINUTES
            ),
            template="password_reset"
        )

    async def send_application_approved(
        self, name: str, email: str, stall_name: str, notes: str | None
    ) -> bool:
        return await self.send_email(
            email,
            name,
            EmailTemplates.APPLICATION_APPROVED_SUBJECT,
            EmailTemplates.APPLICATION_APPROVED_BODY.format(
                name=name, stall_name=stall_name, notes=notes or "None"
            ),
            template="application_approved"
        )

    async def send_application_declined(
        self, name: str, email: str, stall_name: str, reason: str
    ) -> bool:
        return await self.send_email(
            email,
            name,
            EmailTemplates.APPLICATION_DECLINED_SUBJECT,
            EmailTemplates.APPLICATION_DECLINED_BODY.format(
                name=name, stall_name=stall_name, reason=reason
            ),
            template="application_declined"
        )

    async def send_review_removed(
        self, name: str, email: str, stall_name: str, reason: str
    ) -> bool:
        return await self.send_email(
            email,
            name,
            EmailTemplates.REVIEW_REMOVED_SUBJECT,
            EmailTemplates.REVIEW_REMOVED_BODY.format(
                name=name, stall_name=stall_name, reason=reason
            ),
            template="review_removed"
        )

    async def send_amendment_decision(
        self,
        name: str,
        email: str,
        stall_name: str,
        field_name: str,
        approved: bool,
        notes: str | None
    ) -> bool:
        decision = "Approved" if approved else "Rejected"
        return await self.send_email(
            email,
            name,
            EmailTemplates.AMENDMENT_DECIDED_SUBJECT.format(decision=decision),
            EmailTemplates.AMENDMENT_DECIDED_BODY.format(
                name=name,
                stall_name=stall_name,
                field_name=field_name,
                decision=decision.lower(),
                notes=notes or "None"
            ),
            template=f"amendment_{decision.lower()}"
        )

    async def send_closure_approved(self, name: str, email: str) -> bool:
        return await self.send_email(
            email,
            name,
            EmailTemplates.CLOSURE_APPROVED_SUBJECT,
            EmailTemplates.CLOSURE_APPROVED_BODY.format(name=name),
            template="closure_approved"
        )

    async def send_closure_rejected(self, name: str, email: str, notes: str | None) -> bool:
        return await self.send_email(
            email,
            name,
            EmailTemplates.CLOSURE_REJECTED_SUBJECT,
            EmailTemplates.CLOSURE_REJECTED_BODY.format(name=name, notes=notes or "None"),
            template="closure_rejected"
        )


notifier = NotificationService()
