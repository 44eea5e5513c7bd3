# src/accountlink/db/session.py
from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from accountlink.core.config import Settings

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Base class for ORM models
# ------------------------------------------------------------
class Base(DeclarativeBase):
    """Base for all ORM models."""
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ------------------------------------------------------------
# Engine / session factory
# ------------------------------------------------------------
def create_engine(settings: Settings, **kwargs) -> AsyncEngine:
    """
    Create the async engine for settings.DATABASE_URL.

    SQLite does not enforce foreign keys unless asked per connection, and the
    links -> users cascade depends on them.
    """
    # SQL echo is driven by the sqlalchemy.engine logger, see core.logging
    engine = create_async_engine(settings.DATABASE_URL, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )


# ------------------------------------------------------------
# FastAPI DB dependency
# ------------------------------------------------------------
async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Provides an async SQLAlchemy session for FastAPI.
    The factory lives on app.state so tests can swap the engine.
    """
    async with request.app.state.session_factory() as session:
        yield session


# ------------------------------------------------------------
# Optional: startup connectivity check
# ------------------------------------------------------------
async def test_connection(engine: AsyncEngine) -> None:
    """Verify DB connectivity during startup."""
    async with engine.connect() as conn:
        result = await conn.execute(text("SELECT 1"))
        value = result.scalar_one()
        logger.info("DB connection OK: %s", value)
