"""
Database service handling PostgreSQL connections.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
import logging

from ..config.database import DatabaseConfig

logger = logging.getLogger(__name__)

def create_async_db_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create async database engine with connection pooling."""
    logger.info(f"Creating database engine (pool_size={config.pool_size}, max_overflow={config.max_overflow})")
    return create_async_engine(
        config.connection_string,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout,
        pool_recycle=config.pool_recycle,
        pool_pre_ping=config.pool_pre_ping,
        echo=False
    )

def create_async_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create async session maker."""
    return async_sessionmaker(
        engine,
        expire_on_commit=False,
        class_=AsyncSession
    )
