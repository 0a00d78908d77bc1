"""Async SQLAlchemy engine and sessions for the reporting database.

The service only reads. Connections open with
``default_transaction_read_only`` so a stray write fails in PostgreSQL
instead of reaching the ETL-owned tables, and asyncpg's ``command_timeout``
backs up the executor's batch deadline at the statement level.
"""

from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from salesboard.core.config import get_settings


class Base(DeclarativeBase):
    """Declarative base for the mart and portal mappings."""

    metadata = MetaData()


@lru_cache
def get_engine() -> AsyncEngine:
    """Process-wide async engine; sessions borrow from its pool per sub-query."""
    settings = get_settings()
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        connect_args={
            "command_timeout": settings.query_timeout_seconds,
            "server_settings": {
                "application_name": settings.app_name,
                "default_transaction_read_only": "on",
            },
        },
    )


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the shared engine; nothing is ever flushed."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine (shutdown, tests)."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
    get_session_maker.cache_clear()
    get_engine.cache_clear()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one short-lived read-only session."""
    async with get_session_maker()() as session:
        yield session
