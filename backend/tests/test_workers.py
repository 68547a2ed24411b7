"""
Tests for Background Workers

Email delivery and the reset token cleanup task.
"""

import smtplib
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import select

from buzzarfeed.core.exceptions import EmailDeliveryError, InvalidEmailPayloadError
from buzzarfeed.models import PasswordResetToken
from buzzarfeed.models.base import utcnow
from buzzarfeed.workers import notifications
from buzzarfeed.workers.cleanup import cleanup_password_reset_tokens
from buzzarfeed.workers.main import WorkerSettings


def email_payload(**overrides) -> dict:
    payload = {
        "to_email": "fran@example.com",
        "to_name": "Foodie Fran",
        "subject": "Your review was removed",
        "body": "Hello Fran",
        "template": "review_removed",
        "request_id": "req-123",
    }
    payload.update(overrides)
    return payload


class TestBuildMessage:
    """Test suite for MIME message construction"""

    def test_headers(self):
        message = notifications.build_message(email_payload())

        assert message["To"] == "Foodie Fran <fran@example.com>"
        assert message["Subject"] == "Your review was removed"
        assert message.get_content().strip() == "Hello Fran"

    @pytest.mark.parametrize("field", ["to_email", "subject", "body"])
    def test_missing_field(self, field):
        with pytest.raises(InvalidEmailPayloadError):
            notifications.build_message(email_payload(**{field: ""}))


class TestSendEmail:
    """Test suite for the send_email task"""

    @pytest.mark.asyncio
    async def test_invalid_payload_is_dropped(self):
        result = await notifications.send_email({"job_try": 1}, email_payload(to_email=None))

        assert result.startswith("Email dropped")

    @pytest.mark.asyncio
    async def test_logged_without_mail_host(self, monkeypatch):
        monkeypatch.setattr(notifications.settings, "MAIL_HOST", "")

        with patch.object(notifications, "_deliver") as deliver:
            result = await notifications.send_email({}, email_payload())

        assert result == "Email logged"
        deliver.assert_not_called()

    @pytest.mark.asyncio
    async def test_sent(self, monkeypatch):
        monkeypatch.setattr(notifications.settings, "MAIL_HOST", "smtp.example.com")

        with patch.object(notifications, "_deliver") as deliver:
            result = await notifications.send_email({}, email_payload())

        assert result == "Email sent"
        deliver.assert_called_once()

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, monkeypatch):
        monkeypatch.setattr(notifications.settings, "MAIL_HOST", "smtp.example.com")

        with patch.object(notifications, "_deliver", side_effect=smtplib.SMTPServerDisconnected("gone")):
            with pytest.raises(EmailDeliveryError):
                await notifications.send_email({"job_try": 1}, email_payload())

    @pytest.mark.asyncio
    async def test_refused_recipient_is_not_retried(self, monkeypatch):
        monkeypatch.setattr(notifications.settings, "MAIL_HOST", "smtp.example.com")
        refused = smtplib.SMTPRecipientsRefused({"fran@example.com": (550, b"No such user")})

        with patch.object(notifications, "_deliver", side_effect=refused):
            result = await notifications.send_email({}, email_payload())

        assert result == "Recipient refused"


class TestCleanup:
    """Test suite for the reset token cleanup cron"""

    @pytest.mark.asyncio
    async def test_purges_expired_and_used(self, test_db, db_session, enthusiast, monkeypatch):
        now = utcnow()
        db_session.add_all([
            PasswordResetToken(user_id=enthusiast.id, token="a" * 64, expires_at=now - timedelta(minutes=1)),
            PasswordResetToken(user_id=enthusiast.id, token="b" * 64, expires_at=now + timedelta(hours=1),
                               used_at=now),
            PasswordResetToken(user_id=enthusiast.id, token="c" * 64, expires_at=now + timedelta(hours=1)),
        ])
        await db_session.commit()

        monkeypatch.setattr("buzzarfeed.workers.cleanup.AsyncSessionLocal", test_db)
        result = await cleanup_password_reset_tokens({})

        assert result == "Deleted 2 password reset tokens"
        db_session.expunge_all()
        remaining = (await db_session.execute(select(PasswordResetToken.token))).scalars().all()
        assert remaining == ["c" * 64]


class TestWorkerSettings:
    """The worker registers its tasks and the nightly cleanup"""

    def test_functions(self):
        names = {function.name for function in WorkerSettings.functions}

        assert names == {"send_email", "cleanup_password_reset_tokens"}
        assert len(WorkerSettings.cron_jobs) == 1
