"""Structured JSON Logging.

Every record is one JSON object carrying the request id and, once the session
token has been resolved, the acting account (``actor_id``, ``actor_type``).
A review edit, an application decision or a queued email can be traced back to
both the request and the user behind it, in the API and in the arq worker.

``user_id`` stays free for the subject of a log line: when an admin deletes an
account, ``actor_id`` is the admin and ``user_id`` the deleted user.
"""

import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger import jsonlogger

from ..utils import generate_request_id
from .config import settings
from .tracing import get_span_id, get_trace_id

request_id_var: ContextVar[str] = ContextVar('request_id', default='no-request-id')
actor_var: ContextVar[tuple[int, str] | None] = ContextVar('actor', default=None)

# Libraries that log routine detail at INFO/DEBUG
QUIET_LOGGERS = ("passlib", "multipart")


class BuzzarFeedJsonFormatter(jsonlogger.JsonFormatter):
    """Adds request, actor and trace context plus the source location."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = record.created
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['request_id'] = request_id_var.get()

        actor = actor_var.get()
        if actor is not None:
            log_record['actor_id'], log_record['actor_type'] = actor

        for key, value in (('trace_id', get_trace_id()), ('span_id', get_span_id())):
            if value:
                log_record[key] = value

        log_record['source'] = f"{record.filename}:{record.lineno} in {record.funcName}"


def setup_logging():
    """Route every logger through one JSON handler on stdout."""
    level = getattr(logging, settings.LOG_LEVEL)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(BuzzarFeedJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s'))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)

    root.info(
        "Logging configured",
        extra={'log_level': settings.LOG_LEVEL, 'environment': settings.ENVIRONMENT}
    )
    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_request_id(request_id: str | None = None) -> str:
    """Start a new log context: set the request id and clear the actor.

    Args:
        request_id: Id to use; one is generated if not provided

    Returns:
        The request id now in effect
    """
    if request_id is None:
        request_id = generate_request_id()
    request_id_var.set(request_id)
    actor_var.set(None)
    return request_id


def get_request_id() -> str:
    return request_id_var.get()


def bind_actor(user_id: int, user_type: str) -> None:
    """Attach the signed-in account to every record logged from here on."""
    actor_var.set((user_id, user_type))
