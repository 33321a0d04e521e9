"""
Database session management with async SQLAlchemy 2.0.
Handles the engine and sessionmaker shared by every ``SQLAlchemyModel``.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from typing import Optional

from restful.core.config import settings
from restful.core.logging import get_logger
from restful.db.base import Base

logger = get_logger(__name__)

# Global engine and sessionmaker
engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def create_engine(url: Optional[str] = None) -> AsyncEngine:
    """Create the async SQLAlchemy engine."""
    global engine
    
    url = url or settings.DATABASE_URL
    engine = create_async_engine(
        url,
        echo=settings.DATABASE_ECHO,
        pool_pre_ping=True,  # Verify connections before using
    )
    
    logger.info("Database engine created", extra={"dialect": engine.dialect.name})
    return engine


def create_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Create async sessionmaker."""
    global async_session_maker
    
    if engine is None:
        create_engine()
    
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    
    logger.info("Sessionmaker created")
    return async_session_maker


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Return the global sessionmaker, creating it on first use."""
    if async_session_maker is None:
        create_sessionmaker()
    return async_session_maker


def setup_database(url: Optional[str] = None) -> async_sessionmaker[AsyncSession]:
    """
    Point the global engine at ``url`` and return a fresh sessionmaker.
    
    Args:
        url: SQLAlchemy async database URL, defaults to ``settings.DATABASE_URL``
    """
    create_engine(url)
    return create_sessionmaker()


async def init_db(create_all: bool = True) -> None:
    """Initialize database connection and optionally create tables."""
    get_session_maker()
    
    if create_all:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    
    logger.info("Database initialized")


async def close_db() -> None:
    """Close database connections."""
    global engine, async_session_maker
    
    if engine:
        await engine.dispose()
        logger.info("Database connections closed")
    engine = None
    async_session_maker = None
