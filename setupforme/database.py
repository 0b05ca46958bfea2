import asyncio
import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from .config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,  # Validate connections before use
    pool_recycle=3600,
    connect_args={"command_timeout": 60} if settings.database_url.startswith("postgresql") else {}
)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

Base = declarative_base()


async def get_db():
    """Request-scoped session; uncommitted work is rolled back if the request fails."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(max_retries: int = 5) -> None:
    """
    Create the users and apps tables.

    The database may still be starting (e.g., under Docker Compose), so
    connection failures are retried with exponential backoff: 1, 2, 4, 8 seconds.
    """
    from . import models  # noqa: F401  registers the tables on Base.metadata

    for attempt in range(max_retries):
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created successfully")
            return
        except Exception as e:
            reason = f"{type(e).__name__}: {str(e) or 'No error message'}"
            if attempt == max_retries - 1:
                logger.error(f"Failed to connect to database after {max_retries} attempts: {reason}", exc_info=True)
                raise
            wait_time = 2 ** attempt
            logger.warning(f"Database connection attempt {attempt + 1} failed: {reason}")
            logger.info(f"Retrying in {wait_time} seconds...")
            await asyncio.sleep(wait_time)
