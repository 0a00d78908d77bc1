"""Shared pytest fixtures for Salesboard tests."""

import re

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from salesboard.core.cache import (
    get_dashboard_cache,
    get_detail_cache,
    get_filter_options_cache,
    get_promo_cache,
)
from salesboard.core.config import get_settings
from salesboard.core.database import Base
from salesboard.core.executor import get_query_executor
from salesboard.main import app


@pytest.fixture(autouse=True)
def clear_response_caches():
    """Start every test with empty response caches."""
    caches = [get_dashboard_cache(), get_detail_cache(), get_filter_options_cache(), get_promo_cache()]
    for cache in caches:
        cache.clear()
    yield
    for cache in caches:
        cache.clear()


@pytest.fixture
async def client():
    """Create async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def db_session():
    """Create async database session for integration tests.

    Creates the mart and portal tables, provides a session, and drops them
    afterwards. Requires PostgreSQL to be running (docker-compose up -d).
    """
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        for schema in ("mart", "portal"):
            await conn.exec_driver_sql(f"CREATE SCHEMA IF NOT EXISTS {schema}")
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


class FakeExecutor:
    """In-memory stand-in for QueryExecutor.

    Records every batch of statements it receives and answers with canned
    rows per statement name (empty when none are configured).
    """

    def __init__(self, rows=None, error=None):
        self.rows = rows or {}
        self.error = error
        self.batches = []
        self.strategies = []

    async def fetch_all(self, statements):
        return self._answer(statements, "concurrent")

    async def fetch_sequential(self, statements):
        return self._answer(statements, "sequential")

    def _answer(self, statements, strategy):
        self.batches.append(dict(statements))
        self.strategies.append(strategy)
        if self.error is not None:
            raise self.error
        return {name: [dict(row) for row in self.rows.get(name, [])] for name in statements}


@pytest.fixture
def make_executor():
    """Factory for FakeExecutor instances wired into the app."""
    def _make(rows=None, error=None) -> FakeExecutor:
        executor = FakeExecutor(rows=rows, error=error)
        app.dependency_overrides[get_query_executor] = lambda: executor
        return executor

    yield _make
    app.dependency_overrides.clear()


PLACEHOLDER = re.compile(r"%\((p\d+)\)s")


def _compile(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


def _placeholders(statement) -> list[str]:
    names = set(PLACEHOLDER.findall(_compile(statement)))
    return sorted(names, key=lambda name: int(name[1:]))


@pytest.fixture
def compile_sql():
    """Render a statement the way the PostgreSQL dialect would (named binds)."""
    return _compile


@pytest.fixture
def bound_placeholders():
    """Distinct filter placeholders (p1, p2, ...) of a statement, in index order."""
    return _placeholders
