"""
Database connection and session management.

This module provides async database session management using SQLAlchemy 2.0
with PostgreSQL and asyncpg driver. Implements connection pooling and a
request-scoped session dependency.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from useradmin.core.config import settings

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Database Engine Configuration
# -----------------------------------------------------------------------------


def create_database_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create async database engine with connection pooling.

    Args:
        database_url: Database URL. If None, uses settings.database_url

    Returns:
        Configured AsyncEngine instance
    """
    url = database_url or settings.database_url_str

    logger.info("Initializing database engine...")

    engine = create_async_engine(
        url,
        echo=settings.debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=settings.db_pool_recycle,
        pool_timeout=settings.db_pool_timeout,
        poolclass=AsyncAdaptedQueuePool,
        connect_args={
            "server_settings": {
                "application_name": f"{settings.app_name} - {settings.environment}",
            },
        },
    )

    logger.info(
        f"Database engine created: pool_size={settings.db_pool_size}, "
        f"max_overflow={settings.db_max_overflow}"
    )

    return engine


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory stored on app.state."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# -----------------------------------------------------------------------------
# Session Dependency
# -----------------------------------------------------------------------------


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield one database session per request.

    The session is committed when the request handler returns normally and
    rolled back when it raises. Audit writes commit on their own, so rows
    written before a failure are kept.

    Args:
        request: Incoming request (the session factory lives on app.state)

    Yields:
        AsyncSession bound to the application engine
    """
    sessionmaker: async_sessionmaker[AsyncSession] = request.app.state.sessionmaker
    async with sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def check_database_connection(
    sessionmaker: async_sessionmaker[AsyncSession] | None,
) -> bool:
    """
    Run a trivial query to verify database connectivity.

    Returns:
        True if the database answered, False otherwise
    """
    if sessionmaker is None:
        return False
    try:
        async with sessionmaker() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


# -----------------------------------------------------------------------------
# Lifecycle Management
# -----------------------------------------------------------------------------


async def close_database_connection(engine: AsyncEngine) -> None:
    """
    Close database engine and dispose of connection pool.

    Args:
        engine: The AsyncEngine to dispose
    """
    try:
        await engine.dispose()
        logger.info("Database engine disposed successfully")
    except Exception as e:
        logger.error(f"Error disposing database engine: {e}")
