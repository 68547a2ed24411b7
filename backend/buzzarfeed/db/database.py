"""Database Configuration.

SQLAlchemy async engine and session factory. PostgreSQL (asyncpg) in
production; SQLite (aiosqlite) works too and is what the test suite uses.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from ..core.config import settings
from ..core.logging import get_logger
from ..utils.transaction_helpers import safe_rollback

logger = get_logger(__name__)

database_url = settings.DATABASE_URL.replace(
    'postgresql://',
    'postgresql+asyncpg://'
)

engine_options = {
    "echo": settings.DEBUG,
    "pool_pre_ping": True,
}
if not settings.is_sqlite:
    engine_options.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW
    )

engine = create_async_engine(database_url, **engine_options)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

Base = declarative_base()


async def get_db() -> AsyncSession:
    """Dependency to get database session.

    Yields:
        AsyncSession: Database session for the request

    Usage in FastAPI:
        @router.get("/stalls")
        async def list_stalls(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            await safe_rollback(session, e, "request session")
            raise
        finally:
            await session.close()


async def init_models() -> None:
    """Create all tables. Used for local SQLite setups and first boot."""
    from .. import models  # noqa: F401  (registers mappers on Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")
