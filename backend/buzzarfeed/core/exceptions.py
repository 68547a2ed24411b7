"""Custom Exceptions.

Two families live here:

API errors (BuzzarFeedError and subclasses) are raised by services when a
request cannot be honoured. Each carries the HTTP status code and an optional
``errors`` payload; the exception handlers in ``main`` render them as the
standard error envelope ``{success: false, message, errors}``.

Worker errors (WorkerError and subclasses) differentiate between recoverable
and permanent failures in background tasks, so ARQ can decide whether to retry.
"""

from typing import Any


class BuzzarFeedError(Exception):
    """Base exception for errors reported to API clients."""

    status_code = 400

    def __init__(
        self,
        message: str,
        errors: Any = None,
        status_code: int | None = None
    ):
        super().__init__(message)
        self.message = message
        self.errors = errors if errors is not None else []
        if status_code is not None:
            self.status_code = status_code


class ValidationError(BuzzarFeedError):
    """Input failed a business validation rule."""
    status_code = 400


class ConflictError(BuzzarFeedError):
    """Request conflicts with existing data (duplicate review, pending request, ...)."""
    status_code = 400


class StateTransitionError(BuzzarFeedError):
    """Invalid workflow status transition."""
    status_code = 400


class AuthenticationError(BuzzarFeedError):
    """Missing, invalid or rejected credentials."""
    status_code = 401


class PermissionDeniedError(BuzzarFeedError):
    """Authenticated user may not perform the operation."""
    status_code = 403


class NotFoundError(BuzzarFeedError):
    """Requested resource does not exist."""
    status_code = 404


# ============================================================================
# Worker errors
# ============================================================================

class WorkerError(Exception):
    """Base exception for all worker-related errors."""
    pass


class RecoverableError(WorkerError):
    """Error that may be resolved on retry (network, SMTP server busy, ...).

    ARQ should retry these errors.
    """
    pass


class PermanentError(WorkerError):
    """Error that won't be resolved on retry (bad payload, rejected recipient).

    ARQ should NOT retry these errors.
    """
    pass


class EmailDeliveryError(RecoverableError):
    """SMTP delivery failed in a way that may succeed later."""
    pass


class InvalidEmailPayloadError(PermanentError):
    """Email job payload is missing required fields."""
    pass
