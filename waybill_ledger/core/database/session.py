"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.server.core.config import settings

from .utils import create_all, create_engine, create_sessionmaker

logger = get_logger(__name__)

engine = create_engine(settings.database_url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Uncommitted work is rolled back when the session closes, so a request
    that fails halfway leaves nothing behind.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the database.

    Alembic migrations own the schema in production. Tables are created
    here only when ``AUTO_CREATE_TABLES`` is enabled.
    """
    if settings.auto_create_tables:
        logger.info("Creating database tables from ORM metadata")
        await create_all(engine)
