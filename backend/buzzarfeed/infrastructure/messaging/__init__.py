"""Messaging infrastructure: the ARQ pool used to enqueue background jobs."""

from .arq_pool import close_arq_pool, get_arq_pool, get_redis_settings

__all__ = ["close_arq_pool", "get_arq_pool", "get_redis_settings"]
