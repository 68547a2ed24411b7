"""Middleware modules for the application."""

from .payload_size import PayloadSizeMiddleware
from .prometheus import PrometheusMiddleware

__all__ = ["PrometheusMiddleware", "PayloadSizeMiddleware"]
