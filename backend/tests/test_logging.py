"""
Tests for Structured Logging

Covers the request and actor context attached to every JSON record.
"""

import io
import json
import logging

import pytest

from buzzarfeed.core.logging import (
    BuzzarFeedJsonFormatter,
    actor_var,
    bind_actor,
    request_id_var,
    set_request_id,
)

FORMAT = '%(timestamp)s %(level)s %(name)s %(message)s'


@pytest.fixture()
def log_context():
    """Restore the request and actor context after the test."""
    request_token = request_id_var.set(request_id_var.get())
    actor_token = actor_var.set(actor_var.get())
    yield
    request_id_var.reset(request_token)
    actor_var.reset(actor_token)


def format_record(message: str = "Review posted", **extra) -> dict:
    record = logging.LogRecord("buzzarfeed.services.review_service", logging.INFO, "review_service.py", 42,
                               message, None, None, func="create_review")
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(BuzzarFeedJsonFormatter(FORMAT).format(record))


class TestJsonFormatter:
    """Test suite for the fields every record carries"""

    def test_request_and_source(self, log_context):
        set_request_id("req-123")

        line = format_record()

        assert line["message"] == "Review posted"
        assert line["level"] == "INFO"
        assert line["logger"] == "buzzarfeed.services.review_service"
        assert line["request_id"] == "req-123"
        assert line["source"] == "review_service.py:42 in create_review"
        assert "actor_id" not in line

    def test_bound_actor(self, log_context):
        set_request_id("req-456")
        bind_actor(7, "food_stall_owner")

        line = format_record()

        assert line["actor_id"] == 7
        assert line["actor_type"] == "food_stall_owner"

    def test_subject_user_id_is_kept(self, log_context):
        """Test: An admin acting on another account logs both ids"""
        set_request_id()
        bind_actor(1, "admin")

        line = format_record("User deleted", user_id=9)

        assert line["actor_id"] == 1
        assert line["user_id"] == 9

    def test_new_request_clears_actor(self, log_context):
        bind_actor(3, "food_enthusiast")

        request_id = set_request_id()

        line = format_record()
        assert line["request_id"] == request_id
        assert "actor_id" not in line


class TestRequestLogging:
    """Test suite for records logged while serving an API request"""

    @pytest.mark.asyncio
    async def test_signed_in_user_is_the_actor(self, client, enthusiast, enthusiast_headers, caplog):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(BuzzarFeedJsonFormatter(FORMAT))
        logger = logging.getLogger("buzzarfeed.services.user_service")
        caplog.set_level(logging.INFO, logger=logger.name)
        logger.addHandler(handler)

        try:
            response = await client.put("/api/v1/users/profile", json={"name": "Fran the Foodie"},
                                        headers={**enthusiast_headers, "X-Request-ID": "req-profile"})
        finally:
            logger.removeHandler(handler)

        assert response.status_code == 200
        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        updated = next(line for line in lines if line["message"] == "Profile updated")
        assert updated["request_id"] == "req-profile"
        assert updated["actor_id"] == enthusiast.id
        assert updated["actor_type"] == enthusiast.user_type
        assert updated["user_id"] == enthusiast.id
