import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from useradmin.core.config import settings
from useradmin.core.database import (
    close_database_connection,
    create_database_engine,
    create_sessionmaker,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    """
    Lifespan context manager for startup and shutdown events.

    Creates the database engine and stores the session factory in app.state,
    then disposes of the pool on shutdown.
    """
    logger.info(f"Starting {settings.app_name} v{settings.version}")
    logger.info(f"Environment: {settings.environment}")

    engine = create_database_engine()
    app.state.sessionmaker = create_sessionmaker(engine)

    logger.info("Sessionmaker created successfully")

    yield

    logger.info("Shutting down application")
    await close_database_connection(engine)
    app.state.sessionmaker = None
