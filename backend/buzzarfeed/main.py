"""BuzzarFeed - Main Application.

Food stall directory with reviews, vendor workflows (applications,
amendments, account closures) and an admin console.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.v1.endpoints import metrics as metrics_endpoint
from .api.v1.router import api_router
from .core.config import settings
from .core.constants import (
    ApiEndpoints,
    ErrorMessages,
    HttpHeaders,
)
from .core.exceptions import BuzzarFeedError
from .core.logging import get_logger, set_request_id, setup_logging
from .core.metrics import set_app_info
from .core.rate_limiting import limiter
from .core.tracing import setup_tracing
from .db.database import engine
from .infrastructure.messaging import close_arq_pool
from .middleware.payload_size import PayloadSizeMiddleware
from .middleware.prometheus import PrometheusMiddleware
from .schemas.common import error_response
from .services.cache_service import cache

# Setup logging
setup_logging()
logger = get_logger(__name__)

HTTP_ERROR_MESSAGES = {
    status.HTTP_401_UNAUTHORIZED: ErrorMessages.AUTHENTICATION_REQUIRED,
    status.HTTP_404_NOT_FOUND: ErrorMessages.RESOURCE_NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorMessages.METHOD_NOT_ALLOWED,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    logger.info(
        "Application starting",
        extra={
            'environment': settings.ENVIRONMENT,
            'version': settings.APP_VERSION
        }
    )

    # Initialize Prometheus metrics
    set_app_info(
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT
    )
    logger.debug("Prometheus metrics initialized")

    yield

    # Shutdown
    logger.info("Application shutting down")
    await cache.disconnect()
    await close_arq_pool()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Food stall directory, reviews and vendor workflows",
    lifespan=lifespan,
    docs_url=ApiEndpoints.DOCS,
    redoc_url=ApiEndpoints.REDOC,
    openapi_url=ApiEndpoints.OPENAPI
)

# Instrumentation adds middleware, so it has to happen before the first request
setup_tracing(app=app, engine=engine)


# Override OpenAPI schema to add security configuration
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = app.openapi()
    openapi_schema["info"]["description"] = """
Food stall directory with reviews, stall applications, amendments, account
closures and an admin console.

## Authentication

`POST /api/v1/auth/login` returns a session token and also sets it as an
HttpOnly cookie. Browsers can rely on the cookie; other clients send the
token in the Authorization header:

1. Log in and copy `data.access_token`
2. Click the **"Authorize"** button above
3. Enter your token in the format: `Bearer <your-token>`

## Roles

- **food_enthusiast**: reviews, reactions, reports, stall applications
- **food_stall_owner**: everything above plus stall, menu and amendment management
- **admin**: the `/admin` console and every approval workflow
    """
    openapi_schema["components"] = {
        **openapi_schema.get("components", {}),
        "securitySchemes": {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Enter your session token. Format: Bearer <token>"
            }
        }
    }
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


# ============================================================================
# Exception handlers: every error leaves as {success: false, message, errors}
# ============================================================================

@app.exception_handler(BuzzarFeedError)
async def buzzarfeed_error_handler(request: Request, exc: BuzzarFeedError):
    logger.info(
        "Request rejected",
        extra={
            'path': request.url.path,
            'status_code': exc.status_code,
            'error_message': exc.message
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.message, exc.errors)
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(HTTP_ERROR_MESSAGES.get(exc.status_code, str(exc.detail))),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Collect pydantic errors per field: {"email": ["value is not a valid email address"]}."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "body"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response(ErrorMessages.VALIDATION_FAILED, errors)
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(
        "Rate limit exceeded",
        extra={'path': request.url.path, 'limit': str(exc.detail)}
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error_response(f"Too many requests: {exc.detail}")
    )


# Rate limiter (slowapi reads it from app.state)
app.state.limiter = limiter

# CORS middleware; credentials are allowed for the session cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "Accept",
        "X-Request-ID",
        "Content-Length",
    ],
)

# Payload size limit; wrapped by the Prometheus middleware so 413s are counted
app.add_middleware(PayloadSizeMiddleware)

# Prometheus metrics middleware
app.add_middleware(PrometheusMiddleware)


# Request ID middleware
@app.middleware("http")
async def add_request_id_middleware(request: Request, call_next):
    """Tag every request with an id for logs and the X-Request-ID header.

    A client supplied X-Request-ID is reused so calls can be correlated
    across services.
    """
    request_id = set_request_id(request.headers.get(HttpHeaders.REQUEST_ID))

    logger.info(
        "Request started",
        extra={
            'method': request.method,
            'path': request.url.path,
            'client': request.client.host if request.client else 'unknown'
        }
    )

    start_time = time.time()

    try:
        response = await call_next(request)

        process_time = time.time() - start_time

        response.headers[HttpHeaders.REQUEST_ID] = request_id
        response.headers[HttpHeaders.PROCESS_TIME] = str(process_time)

        logger.info(
            "Request completed",
            extra={
                'status_code': response.status_code,
                'process_time': process_time
            }
        )

        return response

    except Exception as e:
        process_time = time.time() - start_time

        logger.error(
            "Request failed",
            extra={
                'error': str(e),
                'process_time': process_time
            },
            exc_info=True
        )

        content = error_response(ErrorMessages.INTERNAL_SERVER_ERROR)
        content["request_id"] = request_id
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
            headers={
                HttpHeaders.REQUEST_ID: request_id,
                HttpHeaders.PROCESS_TIME: str(process_time)
            }
        )


# Include API routes
app.include_router(
    api_router,
    prefix=settings.API_V1_PREFIX
)

# Prometheus metrics endpoint
app.include_router(metrics_endpoint.router, tags=["Metrics"])


# Health check endpoint
@app.get(ApiEndpoints.HEALTH, tags=["Health"])
async def health_check():
    """Health check endpoint for container readiness and liveness checks."""
    return {
        "status": "healthy",
        "application": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT
    }


# Root endpoint
@app.get(ApiEndpoints.ROOT, tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "application": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": ApiEndpoints.DOCS,
        "health": ApiEndpoints.HEALTH,
        "api": settings.API_V1_PREFIX
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "buzzarfeed.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
