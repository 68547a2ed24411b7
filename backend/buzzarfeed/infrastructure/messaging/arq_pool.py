import arq
from arq.connections import ArqRedis, RedisSettings

from ...core.config import settings
from ...core.logging import get_logger

logger = get_logger(__name__)

# Global ARQ pool for job enqueuing
_arq_pool: ArqRedis | None = None


def get_redis_settings() -> RedisSettings:
    """Redis settings shared by the API-side pool and the worker."""
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    redis_settings.conn_retries = 1
    return redis_settings


async def get_arq_pool() -> ArqRedis:
    """Get or create ARQ Redis pool for job enqueuing.

    Used by the API to hand work (emails) to the worker process.

    Returns:
        ARQ Redis pool with enqueue_job() method
    """
    global _arq_pool

    if _arq_pool is None:
        _arq_pool = await arq.create_pool(get_redis_settings())
        logger.info("ARQ pool initialized for job enqueuing")

    return _arq_pool


async def close_arq_pool():
    """Close the ARQ pool gracefully."""
    global _arq_pool

    if _arq_pool is not None:
        await _arq_pool.aclose()
        _arq_pool = None
        logger.info("ARQ pool closed")
