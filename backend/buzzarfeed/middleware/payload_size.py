"""Payload Size Validation Middleware.

Rejects bodies larger than MAX_PAYLOAD_SIZE_MB before they reach a handler.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.config import settings
from ..core.constants import HttpHeaders
from ..core.logging import get_logger
from ..schemas.common import error_response

logger = get_logger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")


class PayloadSizeMiddleware(BaseHTTPMiddleware):
    """Checks Content-Length on requests that may carry a body.

    Requests without the header, or with a malformed one, are passed through;
    the server's own body handling applies to them.
    """

    def __init__(self, app, max_size_bytes: int | None = None):
        super().__init__(app)
        if max_size_bytes is None:
            self.max_size_bytes = settings.MAX_PAYLOAD_SIZE_MB * 1024 * 1024
        else:
            self.max_size_bytes = max_size_bytes

    async def dispatch(self, request: Request, call_next):
        if request.method not in BODY_METHODS:
            return await call_next(request)

        content_length = request.headers.get(HttpHeaders.CONTENT_LENGTH)
        if not content_length:
            return await call_next(request)

        try:
            size = int(content_length)
        except ValueError:
            logger.debug(
                "Invalid Content-Length header format",
                extra={'path': request.url.path, 'content_length': content_length}
            )
            return await call_next(request)

        if size > self.max_size_bytes:
            logger.warning(
                "Request payload too large (rejected by middleware)",
                extra={
                    'method': request.method,
                    'path': request.url.path,
                    'content_length': size,
                    'max_size_bytes': self.max_size_bytes,
                    'client': request.client.host if request.client else 'unknown'
                }
            )
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content=error_response(
                    f"Request payload exceeds maximum size of {self.max_size_bytes} bytes",
                    {"content_length": [f"Received {size} bytes"]}
                )
            )

        return await call_next(request)
